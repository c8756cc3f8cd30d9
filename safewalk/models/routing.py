# safewalk/models/routing.py

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinate(BaseModel):
    """
    Simple latitude/longitude coordinate.
    """
    lat: float
    lon: float


RouteMode = Literal["safe", "fast"]


class Preferences(BaseModel):
    """
    User safety preferences, each from 1 (don't care) to 5 (very important).
    """
    cctv: int = Field(3, ge=1, le=5)
    blind: int = Field(3, ge=1, le=5)


class WeightVector(BaseModel):
    """
    Relative importance of lighting, surveillance and blind-spot avoidance
    in the edge cost function.
    """
    model_config = ConfigDict(frozen=True)

    light: float = Field(0.0, ge=0)
    cctv: float = Field(0.0, ge=0)
    blind: float = Field(0.0, ge=0)


class RouteRequest(BaseModel):
    """
    Request body for the /route endpoint.
    """
    origin: Coordinate
    destination: Coordinate
    mode: RouteMode = "safe"
    preferences: Preferences = Preferences()
    # Hour of day (0-23); the current local hour is used when omitted.
    hour: Optional[int] = Field(None, ge=0, le=23)
    # Requests sharing a session id supersede each other.
    session_id: str = "default"


class RouteGeometry(BaseModel):
    """
    Geometry of the computed route as a GeoJSON-like LineString.

    coordinates is a list of [lat, lon] pairs, e.g.:
    [
        [37.4981, 127.0277],
        [37.4985, 127.0280],
        ...
    ]
    An empty list means no route was found.
    """
    type: str = "LineString"
    coordinates: List[List[float]]


class RouteSummary(BaseModel):
    distance_m: float
    duration_s: float
    cost: float
    geometry: List[List[float]]  # plain list of [lat, lon]


class RouteStep(BaseModel):
    """
    One leg of the route, corresponding to a single road link
    between two graph nodes.
    """
    from_node: str
    to_node: str
    link_id: Optional[str] = None
    distance_m: float
    duration_s: float
    cost: float


class RouteResponse(BaseModel):
    """
    Response for the /route endpoint.

    found=False with empty geometry is the normal "no route available"
    outcome (empty network, unresolved endpoints or disconnected graph).
    """
    found: bool
    mode: RouteMode
    hour: int
    weights: WeightVector
    origin_node: Optional[str] = None
    destination_node: Optional[str] = None
    distance_m: float
    duration_s: float
    cost: float
    geometry: RouteGeometry
    summary: RouteSummary
    steps: List[RouteStep]
    network_version: int
    warnings: List[str] = []
