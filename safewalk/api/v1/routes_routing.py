# safewalk/api/v1/routes_routing.py
from fastapi import APIRouter, HTTPException

from safewalk.api.v1.dependencies import (
    graph_manager,
    request_tracker,
    routing_service,
    transit_client,
)
from safewalk.models.routing import RouteRequest, RouteResponse
from safewalk.models.transit import TransitRouteRequest, TransitRouteResponse
from safewalk.services.request_tracker import RequestSuperseded
from safewalk.services.transit_splicer import splice_itinerary

router = APIRouter(
    prefix="/route",
    tags=["routing"],
)


@router.post(
    "/",
    response_model=RouteResponse,
    summary="Compute a walking route between origin and destination",
)
async def compute_route(request: RouteRequest) -> RouteResponse:
    """
    Compute a walking route on the loaded road network.

    - Snaps origin/destination to the nearest network nodes.
    - Uses Dijkstra with the safety cost (mode=safe) or plain length (mode=fast).
    - found=false with an empty geometry means no route is available.
    """
    async def work() -> RouteResponse:
        return routing_service.compute_route(request)

    try:
        return await request_tracker.run(request.session_id, work)
    except RequestSuperseded as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc


@router.post(
    "/transit",
    response_model=TransitRouteResponse,
    summary="Transit itinerary with safety-aware walking legs",
)
async def compute_transit_route(request: TransitRouteRequest) -> TransitRouteResponse:
    """
    Fetch an itinerary from the transit provider and replace each walking
    leg with a safety-aware path. Falls back to a direct walk when the
    provider is unavailable.
    """
    async def work() -> TransitRouteResponse:
        # One snapshot for every leg of this request
        snapshot = graph_manager.snapshot
        itinerary = await transit_client.fetch_itinerary(request.origin, request.destination)

        weights, hour = routing_service.weights_for(request)
        spliced, count = splice_itinerary(
            itinerary,
            snapshot,
            weights,
            routing_service,
            request.origin,
            request.destination,
        )

        warnings = []
        if itinerary.is_fallback:
            warnings.append("Transit provider unavailable; showing a direct walking route.")
        if snapshot.is_empty:
            warnings.append("No road network loaded; walking legs keep straight-line endpoints.")

        return TransitRouteResponse(
            itinerary=spliced,
            mode=request.mode,
            hour=hour,
            weights=weights,
            spliced_segments=count,
            network_version=snapshot.version,
            warnings=warnings,
        )

    try:
        return await request_tracker.run(request.session_id, work)
    except RequestSuperseded as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
