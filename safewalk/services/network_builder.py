# safewalk/services/network_builder.py
"""
Turn road-data features into a routable graph.

The graph is a networkx DiGraph holding both directions of every road link.
Edge attributes:
    link_id, length, width, cctv, lamp, dark, blind,
    geometry: tuple of (lon, lat) oriented in the direction of travel
Node attributes:
    x (lon), y (lat) of the first vertex seen at that endpoint
"""

import itertools
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import networkx as nx
from pydantic import ValidationError

from safewalk.core.config import Settings, settings
from safewalk.core.logger import logger
from safewalk.models.network import IngestReport, RoadFeature, RoadProperties
from safewalk.services.safety_model import BlindScoreConfig, derive_blind_score


@dataclass(frozen=True)
class IngestConfig:
    default_length_m: float = 100.0
    default_width_m: float = 6.0
    require_explicit_node_ids: bool = False
    blind: BlindScoreConfig = field(default_factory=BlindScoreConfig)

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "IngestConfig":
        return cls(
            default_length_m=s.DEFAULT_LENGTH_M,
            default_width_m=s.DEFAULT_WIDTH_M,
            require_explicit_node_ids=s.REQUIRE_EXPLICIT_NODE_IDS,
            blind=BlindScoreConfig.from_settings(s),
        )


def features_from_geojson(
    data: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]],
) -> Tuple[List[RoadFeature], int]:
    """
    Extract line features from a GeoJSON FeatureCollection (or a bare list of
    features).

    Returns (features, skipped) where skipped counts entries that are not a
    LineString with at least two valid vertices.
    """
    if isinstance(data, Mapping):
        raw_features = data.get("features") or []
    else:
        raw_features = list(data)

    features: List[RoadFeature] = []
    skipped = 0

    for raw in raw_features:
        if not isinstance(raw, Mapping):
            skipped += 1
            continue

        geometry = raw.get("geometry") or {}
        if geometry.get("type") != "LineString":
            skipped += 1
            continue

        try:
            # Drop any altitude component
            coords = [(float(pt[0]), float(pt[1])) for pt in geometry.get("coordinates") or []]
        except (TypeError, ValueError, IndexError):
            skipped += 1
            continue

        if len(coords) < 2:
            skipped += 1
            continue

        properties = raw.get("properties")
        try:
            props = RoadProperties.model_validate(properties or {})
        except ValidationError:
            props = RoadProperties()

        features.append(RoadFeature(coordinates=coords, properties=props))

    return features, skipped


def _endpoint_ids(
    feature: RoadFeature, fallback_key: Optional[str] = None
) -> Tuple[str, str, bool]:
    """
    Node ids for the two ends of a feature, and whether they were synthesized.

    Synthesized ids are unique to the feature, so such a feature never
    connects to any other one.
    """
    props = feature.properties
    link = props.link_id if props.link_id is not None else fallback_key

    start = props.start_node
    end = props.end_node
    synthesized = start is None or end is None

    if start is None:
        start = f"n_{link}_s"
    if end is None:
        end = f"n_{link}_e"

    return start, end, synthesized


def _unused_anonymous_key(G: nx.DiGraph, keys: Iterator[int]) -> str:
    # Skips keys whose synthesized nodes an earlier batch already holds
    return next(
        f"anon{n}" for n in keys if f"n_anon{n}_s" not in G and f"n_anon{n}_e" not in G
    )


def edge_attributes(feature: RoadFeature, config: IngestConfig) -> dict:
    """
    Edge attributes for a feature, with defaults substituted for missing
    values and the blind score derived when not supplied.
    """
    props = feature.properties

    length = props.length_m if props.length_m is not None else config.default_length_m
    width = props.width_m if props.width_m is not None else config.default_width_m
    cctv = props.cctv_count if props.cctv_count is not None else 0
    lamp = props.lamp_count if props.lamp_count is not None else 0
    dark = props.dark_score if props.dark_score is not None else 0.0

    blind = props.blind_score
    if blind is None:
        blind = derive_blind_score(cctv, lamp, width, config.blind)

    return {
        "link_id": props.link_id,
        "length": float(length),
        "width": float(width),
        "cctv": int(cctv),
        "lamp": int(lamp),
        "dark": float(dark),
        "blind": float(blind),
    }


def add_features(
    G: nx.DiGraph,
    features: Iterable[RoadFeature],
    config: IngestConfig = IngestConfig(),
    report: Optional[IngestReport] = None,
) -> IngestReport:
    """
    Insert features into G in place, both directions per feature.

    Existing edges are never removed; re-inserting a known node pair
    overwrites that pair in both directions.
    """
    if report is None:
        report = IngestReport()

    anonymous_keys = itertools.count()

    for feature in features:
        report.features += 1

        if len(feature.coordinates) < 2:
            report.skipped += 1
            continue

        props = feature.properties
        fallback_key = None
        if props.link_id is None and (props.start_node is None or props.end_node is None):
            fallback_key = _unused_anonymous_key(G, anonymous_keys)

        u, v, synthesized = _endpoint_ids(feature, fallback_key)
        if synthesized:
            if config.require_explicit_node_ids:
                report.rejected += 1
                continue
            report.synthesized_ids += 1

        attrs = edge_attributes(feature, config)
        forward = tuple(feature.coordinates)
        backward = tuple(reversed(forward))

        if u not in G:
            G.add_node(u, x=forward[0][0], y=forward[0][1])
        if v not in G:
            G.add_node(v, x=forward[-1][0], y=forward[-1][1])

        G.add_edge(u, v, geometry=forward, **attrs)
        G.add_edge(v, u, geometry=backward, **attrs)
        report.edges_inserted += 1

    if report.synthesized_ids:
        message = (
            f"{report.synthesized_ids} feature(s) lack explicit start/end node ids; "
            "they were given feature-local ids and will not connect to other links."
        )
        report.warnings.append(message)
        logger.warning(message)

    if report.rejected:
        message = f"{report.rejected} feature(s) rejected for missing explicit node ids."
        report.warnings.append(message)
        logger.warning(message)

    return report


def build_graph(
    features: Iterable[RoadFeature],
    config: IngestConfig = IngestConfig(),
) -> nx.DiGraph:
    """
    Build a fresh graph from a single batch of features.
    """
    G = nx.DiGraph()
    add_features(G, features, config)
    return G
