# safewalk/services/routing_service.py

from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, List, Optional, Tuple

import networkx as nx

from safewalk.core.config import settings
from safewalk.core.logger import logger
from safewalk.models.routing import (
    Coordinate,
    RouteGeometry,
    RouteRequest,
    RouteResponse,
    RouteStep,
    RouteSummary,
    WeightVector,
)
from safewalk.services.graph_manager import GraphManager, LonLat, NetworkSnapshot
from safewalk.services.safety_model import (
    CostConfig,
    WeightModelConfig,
    compute_weights,
    edge_cost,
    resolve_hour,
)


@dataclass(frozen=True)
class PathResult:
    """
    Outcome of one shortest-path search. An empty coordinate list means the
    target was not reachable.
    """
    nodes: List[Any] = field(default_factory=list)
    coordinates: List[LonLat] = field(default_factory=list)  # (lon, lat)
    cost: float = 0.0
    distance_m: float = 0.0

    @property
    def found(self) -> bool:
        return bool(self.coordinates)


NO_PATH = PathResult()


def path_coordinates(G: nx.DiGraph, nodes: List[Any]) -> List[LonLat]:
    """
    Concatenate the oriented geometry of every traversed edge.

    A junction vertex shared by two consecutive edges is emitted once.
    """
    if not nodes:
        return []

    if len(nodes) == 1:
        data = G.nodes[nodes[0]]
        return [(data["x"], data["y"])]

    coords: List[LonLat] = []
    for u, v in zip(nodes[:-1], nodes[1:]):
        for point in G[u][v]["geometry"]:
            if coords and coords[-1] == point:
                continue
            coords.append(point)
    return coords


def solve_path(
    G: nx.DiGraph,
    start: Optional[Any],
    end: Optional[Any],
    weights: WeightVector,
    config: CostConfig = CostConfig(),
) -> PathResult:
    """
    Cheapest path from start to end under the safety cost function.

    Unknown endpoints and unreachable targets give NO_PATH rather than an
    exception; callers branch on result.found.
    """
    if start is None or end is None or start not in G or end not in G:
        return NO_PATH

    def weight(u: Any, v: Any, data: dict) -> float:
        return edge_cost(data, weights, config)

    try:
        cost, nodes = nx.single_source_dijkstra(G, start, end, weight=weight)
    except nx.NetworkXNoPath:
        return NO_PATH

    distance_m = sum(G[u][v]["length"] for u, v in zip(nodes[:-1], nodes[1:]))

    return PathResult(
        nodes=list(nodes),
        coordinates=path_coordinates(G, nodes),
        cost=float(cost),
        distance_m=float(distance_m),
    )


def to_lat_lon(coords: List[LonLat]) -> List[List[float]]:
    return [[lat, lon] for lon, lat in coords]


class RoutingService:
    """
    High-level walking-route service:
    - derives the weight vector from preferences, mode and hour
    - snaps origin/destination to the nearest network nodes
    - computes the safety-weighted shortest path
    - builds geometry, per-link steps and duration
    """

    def __init__(
        self,
        graph_manager: GraphManager,
        weight_config: Optional[WeightModelConfig] = None,
        cost_config: Optional[CostConfig] = None,
        walking_speed_kmh: float = settings.WALKING_SPEED_KMH,
    ) -> None:
        self.graph_manager = graph_manager
        self.weight_config = weight_config or WeightModelConfig.from_settings()
        self.cost_config = cost_config or CostConfig.from_settings()
        self.walking_speed_kmh = walking_speed_kmh
        logger.info("RoutingService initialised.")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def weights_for(self, request: Any) -> Tuple[WeightVector, int]:
        """
        Weight vector and effective hour for a route or transit request.
        """
        hour = resolve_hour(request.hour)
        weights = compute_weights(request.preferences, hour, request.mode, self.weight_config)
        return weights, hour

    def route_between(
        self,
        snapshot: NetworkSnapshot,
        origin: Coordinate,
        destination: Coordinate,
        weights: WeightVector,
    ) -> Tuple[PathResult, Optional[Any], Optional[Any]]:
        """
        Snap both points to the network and solve. Returns the path together
        with the resolved start and end nodes (None when the network is empty).
        """
        t_nn0 = perf_counter()
        origin_node = snapshot.find_nearest_node(origin)
        destination_node = snapshot.find_nearest_node(destination)
        t_nn1 = perf_counter()
        logger.info(
            "Nearest-node lookup: origin_node={}, destination_node={}, time={:.2f} ms",
            origin_node,
            destination_node,
            (t_nn1 - t_nn0) * 1000.0,
        )

        t_sp0 = perf_counter()
        result = solve_path(snapshot.graph, origin_node, destination_node, weights, self.cost_config)
        t_sp1 = perf_counter()
        logger.info(
            "Path search: found={}, {} nodes, cost={:.1f} in {:.2f} ms",
            result.found,
            len(result.nodes),
            result.cost,
            (t_sp1 - t_sp0) * 1000.0,
        )
        return result, origin_node, destination_node

    def compute_route(
        self,
        request: RouteRequest,
        snapshot: Optional[NetworkSnapshot] = None,
    ) -> RouteResponse:
        """
        Main entry point for the /route endpoint.

        1. Take one network snapshot for the whole request.
        2. Compute weights for the requested mode and hour.
        3. Snap endpoints and solve.
        4. Build geometry, steps, distance and duration.
        """
        t0 = perf_counter()
        if snapshot is None:
            snapshot = self.graph_manager.snapshot

        origin = request.origin
        destination = request.destination
        logger.info(
            "Received {} route request from ({:.6f}, {:.6f}) -> ({:.6f}, {:.6f}) on network v{}",
            request.mode,
            origin.lat,
            origin.lon,
            destination.lat,
            destination.lon,
            snapshot.version,
        )

        weights, hour = self.weights_for(request)
        result, origin_node, destination_node = self.route_between(
            snapshot, origin, destination, weights
        )

        warnings: List[str] = []
        if snapshot.is_empty:
            warnings.append("No road network loaded; no route available.")
        elif not result.found:
            warnings.append(
                f"No route available between node {origin_node} and node {destination_node} "
                "(they are not connected in the road network)."
            )

        coords = to_lat_lon(result.coordinates)
        steps = self._build_steps(snapshot.graph, result.nodes, weights)
        duration_s = self._compute_duration_from_distance(result.distance_m)

        logger.info(
            "Route summary: distance={:.1f} m, duration={:.1f} s, total time {:.2f} ms",
            result.distance_m,
            duration_s,
            (perf_counter() - t0) * 1000.0,
        )

        return RouteResponse(
            found=result.found,
            mode=request.mode,
            hour=hour,
            weights=weights,
            origin_node=None if origin_node is None else str(origin_node),
            destination_node=None if destination_node is None else str(destination_node),
            distance_m=result.distance_m,
            duration_s=duration_s,
            cost=result.cost,
            geometry=RouteGeometry(coordinates=coords),
            summary=RouteSummary(
                distance_m=result.distance_m,
                duration_s=duration_s,
                cost=result.cost,
                geometry=coords,
            ),
            steps=steps,
            network_version=snapshot.version,
            warnings=warnings,
        )

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _build_steps(
        self,
        G: nx.DiGraph,
        nodes: List[Any],
        weights: WeightVector,
    ) -> List[RouteStep]:
        steps: List[RouteStep] = []
        for u, v in zip(nodes[:-1], nodes[1:]):
            data = G[u][v]
            steps.append(
                RouteStep(
                    from_node=str(u),
                    to_node=str(v),
                    link_id=data.get("link_id"),
                    distance_m=data["length"],
                    duration_s=self._compute_duration_from_distance(data["length"]),
                    cost=edge_cost(data, weights, self.cost_config),
                )
            )
        return steps

    def _compute_duration_from_distance(self, distance_m: float) -> float:
        """
        Convert distance in metres to duration in seconds at walking speed.
        """
        if distance_m <= 0:
            return 0.0

        speed_mps = self.walking_speed_kmh * 1000.0 / 3600.0
        if speed_mps <= 0:
            return 0.0

        return distance_m / speed_mps
