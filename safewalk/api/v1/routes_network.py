# safewalk/api/v1/routes_network.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, Query

from safewalk.api.v1.dependencies import graph_manager, routing_service
from safewalk.core.logger import logger
from safewalk.models.network import (
    IngestReport,
    LinkSafetyResponse,
    NetworkStats,
    OsmLoadRequest,
)
from safewalk.models.routing import Coordinate, Preferences
from safewalk.services.link_classifier import classify_links, parse_bbox
from safewalk.services.road_sources import load_osm_features
from safewalk.services.safety_model import ClassifierConfig, compute_weights, resolve_hour

router = APIRouter(
    prefix="/network",
    tags=["network"],
)


@router.get("/", response_model=NetworkStats, summary="Current road network")
def network_stats() -> NetworkStats:
    return graph_manager.snapshot.stats()


@router.post(
    "/batches",
    response_model=IngestReport,
    summary="Merge a GeoJSON FeatureCollection of road links",
)
def ingest_batch(
    collection: Dict[str, Any] = Body(...),
    replace: bool = Query(False, description="Discard the current network first"),
) -> IngestReport:
    """
    Merge one regional batch of road links into the network.

    Features with missing or malformed attributes get defaults; features
    without line geometry are skipped and counted, never failing the batch.
    """
    return graph_manager.merge_geojson(collection, replace=replace)


@router.post("/osm", response_model=IngestReport, summary="Merge an OpenStreetMap network")
def ingest_osm(request: OsmLoadRequest) -> IngestReport:
    try:
        features = load_osm_features(
            Coordinate(lat=request.lat, lon=request.lon),
            request.dist_m,
            network_type=request.network_type,
        )
    except Exception as exc:
        logger.exception("OSM download failed")
        raise HTTPException(status_code=502, detail=f"OSM download failed: {exc}") from exc

    return graph_manager.merge_features(features, replace=request.replace)


@router.delete("/", response_model=NetworkStats, summary="Discard the road network")
def reset_network() -> NetworkStats:
    graph_manager.reset()
    return graph_manager.snapshot.stats()


@router.get(
    "/links",
    response_model=LinkSafetyResponse,
    summary="Road links graded by safety level",
)
def link_safety(
    bbox: Optional[str] = Query(None, description="min_lon,min_lat,max_lon,max_lat"),
    hour: Optional[int] = Query(None, ge=0, le=23),
    cctv: int = Query(3, ge=1, le=5),
    blind: int = Query(3, ge=1, le=5),
) -> LinkSafetyResponse:
    bounds = None
    if bbox is not None:
        try:
            bounds = parse_bbox(bbox)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=f"Invalid bbox: {exc}") from exc

    snapshot = graph_manager.snapshot
    effective_hour = resolve_hour(hour)
    weights = compute_weights(
        Preferences(cctv=cctv, blind=blind),
        effective_hour,
        "safe",
        routing_service.weight_config,
    )
    links = classify_links(snapshot, weights, bounds, ClassifierConfig.from_settings())
    return LinkSafetyResponse(hour=effective_hour, network_version=snapshot.version, links=links)
