# safewalk/services/link_classifier.py

from typing import List, Optional, Tuple

from safewalk.models.network import LinkSafety
from safewalk.models.routing import WeightVector
from safewalk.services.graph_manager import NetworkSnapshot
from safewalk.services.safety_model import ClassifierConfig, classify_link

# (min_lon, min_lat, max_lon, max_lat)
BBox = Tuple[float, float, float, float]


def parse_bbox(text: str) -> BBox:
    """
    Parse "min_lon,min_lat,max_lon,max_lat". Raises ValueError when malformed.
    """
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 4:
        raise ValueError("bbox must have four comma-separated numbers")
    min_lon, min_lat, max_lon, max_lat = (float(p) for p in parts)
    if min_lon > max_lon or min_lat > max_lat:
        raise ValueError("bbox minimum exceeds maximum")
    return min_lon, min_lat, max_lon, max_lat


def classify_links(
    snapshot: NetworkSnapshot,
    weights: WeightVector,
    bbox: Optional[BBox] = None,
    config: ClassifierConfig = ClassifierConfig(),
) -> List[LinkSafety]:
    """
    Grade every road link of the snapshot, optionally keeping only links with
    at least one vertex inside bbox. Each link is reported once.
    """
    links: List[LinkSafety] = []
    seen = set()

    for u, v, data in snapshot.graph.edges(data=True):
        pair = frozenset((u, v))
        if pair in seen:
            continue
        seen.add(pair)

        geometry = data["geometry"]
        if bbox is not None:
            min_lon, min_lat, max_lon, max_lat = bbox
            if not any(
                min_lon <= lon <= max_lon and min_lat <= lat <= max_lat for lon, lat in geometry
            ):
                continue

        level, score = classify_link(data, weights, config)
        links.append(
            LinkSafety(
                link_id=data.get("link_id"),
                level=level,
                score=score,
                coordinates=[[lat, lon] for lon, lat in geometry],
            )
        )

    return links
