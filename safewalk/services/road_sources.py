# safewalk/services/road_sources.py
"""
Road-data sources: GeoJSON files from the regional feed and OpenStreetMap
walking networks downloaded with osmnx.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import networkx as nx
import osmnx as ox

from safewalk.core.logger import logger
from safewalk.models.network import RoadFeature, RoadProperties
from safewalk.models.routing import Coordinate

# OSM values of the `lit` tag meaning the way is lit at night
LIT_VALUES = {"yes", "true", "1", "24/7", "sunset-sunrise", "automatic", "limited"}

# Maximum radius (meters) for any downloaded OSM network
MAX_OSM_RADIUS_M = 15_000.0


def load_geojson_file(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    logger.info("Loaded road data file {} ({} features)", path, len(data.get("features") or []))
    return data


def _first(value: Any) -> Any:
    # osmnx keeps merged tag values as lists after simplification
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _lamp_count(lit: Any) -> int:
    values = lit if isinstance(lit, (list, tuple)) else [lit]
    for value in values:
        if value is not None and str(value).strip().lower() in LIT_VALUES:
            return 1
    return 0


def features_from_osm_graph(G: nx.MultiDiGraph) -> List[RoadFeature]:
    """
    Convert an osmnx graph into road features with explicit OSM node ids.

    osmnx stores both directions of two-way ways and may hold parallel edges;
    only the shortest edge of each node pair is kept since the routing graph
    has one link per pair.
    """
    best: Dict[frozenset, Tuple[float, RoadFeature]] = {}

    for u, v, _, data in G.edges(keys=True, data=True):
        geom = data.get("geometry")
        if geom is not None:
            # shapely LineString: coords are (x, y) = (lon, lat)
            coords = [(float(x), float(y)) for x, y in geom.coords]
        else:
            node_u = G.nodes[u]
            node_v = G.nodes[v]
            coords = [(node_u["x"], node_u["y"]), (node_v["x"], node_v["y"])]

        osmid = data.get("osmid")
        if isinstance(osmid, (list, tuple)):
            osmid = ",".join(str(i) for i in osmid)

        props = RoadProperties(
            link_id=osmid,
            start_node=u,
            end_node=v,
            length_m=data.get("length"),
            width_m=_first(data.get("width")),
            lamp_count=_lamp_count(data.get("lit")),
        )
        feature = RoadFeature(coordinates=coords, properties=props)
        length = props.length_m if props.length_m is not None else float("inf")

        pair = frozenset((u, v))
        if pair not in best or length < best[pair][0]:
            best[pair] = (length, feature)

    return [feature for _, feature in best.values()]


def load_osm_features(
    center: Coordinate,
    dist_m: float,
    network_type: str = "walk",
) -> List[RoadFeature]:
    """
    Download the OSM network around center and convert it to road features.

    OSM carries no surveillance counts, so those default to 0; the `lit` tag
    is mapped to one lighting device.
    """
    radius_m = min(dist_m, MAX_OSM_RADIUS_M)
    if radius_m < dist_m:
        logger.warning(
            "Requested OSM radius {:.1f} m capped at {:.1f} m.", dist_m, MAX_OSM_RADIUS_M
        )

    for tag in ("lit", "width"):
        if tag not in ox.settings.useful_tags_way:
            ox.settings.useful_tags_way = list(ox.settings.useful_tags_way) + [tag]

    logger.info(
        "Downloading OSM {} network around ({:.6f}, {:.6f}) with radius={:.1f} m",
        network_type,
        center.lat,
        center.lon,
        radius_m,
    )
    G = ox.graph_from_point(
        center_point=(center.lat, center.lon),
        dist=radius_m,
        network_type=network_type,
        simplify=True,
    )
    features = features_from_osm_graph(G)
    logger.info(
        "OSM graph: {} nodes, {} edges -> {} road features",
        G.number_of_nodes(),
        G.number_of_edges(),
        len(features),
    )
    return features
