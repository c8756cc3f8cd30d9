# safewalk/services/graph_manager.py
import threading
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import networkx as nx
import numpy as np
from scipy.spatial import cKDTree

from safewalk.core.logger import logger
from safewalk.models.network import IngestReport, NetworkStats, RoadFeature
from safewalk.models.routing import Coordinate
from safewalk.services.network_builder import IngestConfig, add_features, features_from_geojson

LonLat = Tuple[float, float]


@dataclass(frozen=True, eq=False)
class NetworkSnapshot:
    """
    One immutable, published version of the road graph.

    The graph is frozen; the node coordinate table and the vertex index are
    built once when the snapshot is created.
    """

    graph: nx.DiGraph
    version: int = 0
    node_coords: Dict[str, LonLat] = field(default_factory=dict)
    # Bounding box of all nodes as (north, south, east, west)
    bbox: Optional[Tuple[float, float, float, float]] = None
    _tree: Optional[cKDTree] = None
    _vertex_owner: Tuple[str, ...] = ()

    @classmethod
    def from_graph(cls, G: nx.DiGraph, version: int) -> "NetworkSnapshot":
        """
        Freeze G and index every vertex of every edge geometry.

        Each vertex is owned by whichever end node of its edge lies nearer
        (planar distance in degree space).
        """
        node_coords: Dict[str, LonLat] = {
            node_id: (data["x"], data["y"]) for node_id, data in G.nodes(data=True)
        }

        vertices: List[LonLat] = []
        owners: List[str] = []
        seen = set()

        for u, v, data in G.edges(data=True):
            pair = frozenset((u, v))
            if pair in seen:
                continue
            seen.add(pair)

            ux, uy = node_coords[u]
            vx, vy = node_coords[v]
            for x, y in data["geometry"]:
                du = (x - ux) ** 2 + (y - uy) ** 2
                dv = (x - vx) ** 2 + (y - vy) ** 2
                vertices.append((x, y))
                owners.append(u if du <= dv else v)

        tree = cKDTree(np.asarray(vertices, dtype=float)) if vertices else None

        bbox = None
        if node_coords:
            xs = [c[0] for c in node_coords.values()]
            ys = [c[1] for c in node_coords.values()]
            bbox = (max(ys), min(ys), max(xs), min(xs))

        return cls(
            graph=nx.freeze(G),
            version=version,
            node_coords=node_coords,
            bbox=bbox,
            _tree=tree,
            _vertex_owner=tuple(owners),
        )

    @property
    def is_empty(self) -> bool:
        return self._tree is None

    def stats(self) -> NetworkStats:
        edge_count = self.graph.number_of_edges()
        return NetworkStats(
            version=self.version,
            node_count=self.graph.number_of_nodes(),
            edge_count=edge_count,
            link_count=len(set(frozenset((u, v)) for u, v in self.graph.edges())),
        )

    def find_nearest_node(self, coord: Coordinate) -> Optional[str]:
        """
        Node owning the edge vertex closest to the coordinate.

        Distance is plain Euclidean in lon/lat degrees, which is fine at
        city scale. Returns None only when the graph has no edges.
        """
        if self._tree is None:
            return None

        _, idx = self._tree.query([coord.lon, coord.lat])
        node_id = self._vertex_owner[int(idx)]
        logger.debug(
            "Nearest node for ({:.6f}, {:.6f}) -> node {}", coord.lat, coord.lon, node_id
        )
        return node_id


class GraphManager:
    # Holds the current network snapshot and publishes new ones.
    #
    # Merges are serialised by a lock and build a new graph from a copy of the
    # current one; readers only ever see complete, frozen snapshots.

    def __init__(self, config: Optional[IngestConfig] = None) -> None:
        self.config = config or IngestConfig.from_settings()
        self._lock = threading.Lock()
        self._snapshot = NetworkSnapshot.from_graph(nx.DiGraph(), version=0)
        logger.info("GraphManager initialised (empty network).")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    @property
    def snapshot(self) -> NetworkSnapshot:
        """
        Current snapshot. Callers should take it once per request and use
        that object throughout.
        """
        return self._snapshot

    def merge_features(
        self,
        features: Iterable[RoadFeature],
        replace: bool = False,
        skipped: int = 0,
    ) -> IngestReport:
        """
        Merge a batch of features into the network (or build a fresh network
        when replace is True) and publish the result.
        """
        t0 = perf_counter()

        with self._lock:
            current = self._snapshot
            G = nx.DiGraph() if replace else nx.DiGraph(current.graph)

            # Entries dropped before parsing still count as seen
            report = IngestReport(features=skipped, skipped=skipped)
            add_features(G, features, self.config, report)

            snapshot = NetworkSnapshot.from_graph(G, version=current.version + 1)
            self._snapshot = snapshot

        report.node_count = snapshot.graph.number_of_nodes()
        report.edge_count = snapshot.graph.number_of_edges()
        report.version = snapshot.version

        if report.skipped:
            logger.warning("Skipped {} feature(s) without usable line geometry.", report.skipped)

        bbox_text = ""
        if snapshot.bbox is not None:
            bbox_text = "; bbox N={:.6f}, S={:.6f}, E={:.6f}, W={:.6f}".format(*snapshot.bbox)

        logger.info(
            "Network v{} ready: {} nodes, {} edges (+{} links, {:.2f} ms){}",
            snapshot.version,
            report.node_count,
            report.edge_count,
            report.edges_inserted,
            (perf_counter() - t0) * 1000.0,
            bbox_text,
        )
        return report

    def merge_geojson(
        self,
        data: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]],
        replace: bool = False,
    ) -> IngestReport:
        features, skipped = features_from_geojson(data)
        return self.merge_features(features, replace=replace, skipped=skipped)

    def reset(self) -> None:
        with self._lock:
            self._snapshot = NetworkSnapshot.from_graph(
                nx.DiGraph(), version=self._snapshot.version + 1
            )
        logger.info("Network discarded (now v{}).", self._snapshot.version)
