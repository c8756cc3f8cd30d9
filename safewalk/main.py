# safewalk/main.py

from fastapi import FastAPI

from safewalk.api.v1 import routes_health, routes_network, routes_routing
from safewalk.api.v1.dependencies import graph_manager
from safewalk.core.config import settings
from safewalk.core.logger import logger
from safewalk.services.road_sources import load_geojson_file


def load_startup_data() -> None:
    """
    Merge the road data files listed in ROAD_DATA_FILES into the network.
    """
    for path in settings.ROAD_DATA_FILES:
        try:
            data = load_geojson_file(path)
        except (OSError, ValueError) as exc:
            logger.error("Could not load road data file {}: {}", path, exc)
            continue
        graph_manager.merge_geojson(data)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Safety-aware walking routes spliced into transit itineraries.",
    )

    # Routers
    app.include_router(routes_health.router, prefix="", tags=["health"])
    app.include_router(routes_network.router, prefix="", tags=["network"])
    app.include_router(routes_routing.router, prefix="", tags=["routing"])

    load_startup_data()

    return app


app = create_app()
