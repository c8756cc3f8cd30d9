# safewalk/models/transit.py

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from safewalk.models.routing import Coordinate, Preferences, RouteMode, WeightVector

# Provider traffic types
SUBWAY = 1
BUS = 2
WALK = 3


class ProviderModel(BaseModel):
    """
    Base for transit-provider payloads: camelCase on the wire, unknown
    provider fields kept so vehicle segments pass through untouched.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class Station(ProviderModel):
    x: float
    y: float
    station_name: Optional[str] = None


class PassStopList(ProviderModel):
    stations: List[Station] = []


class TransitSegment(ProviderModel):
    """
    One leg of an itinerary. Coordinates are provider x (lon) / y (lat).

    safe_path is filled in for walking legs once a safety-aware path has been
    computed; it is a list of [lat, lon] pairs.
    """
    traffic_type: int
    section_time: Optional[float] = None
    distance: Optional[float] = None
    start_x: Optional[float] = None
    start_y: Optional[float] = None
    end_x: Optional[float] = None
    end_y: Optional[float] = None
    pass_stop_list: Optional[PassStopList] = None
    safe_path: Optional[List[List[float]]] = None

    @property
    def is_walking(self) -> bool:
        return self.traffic_type == WALK


class ItineraryInfo(ProviderModel):
    total_time: Optional[float] = None
    total_distance: Optional[float] = None
    payment: Optional[float] = None


class ItineraryPath(ProviderModel):
    """
    One itinerary alternative.
    """
    path_type: Optional[int] = None
    info: ItineraryInfo = ItineraryInfo()
    sub_path: List[TransitSegment] = Field(default_factory=list)


class Itinerary(ProviderModel):
    path: List[ItineraryPath] = Field(min_length=1)
    # True when the provider failed and a direct walk was synthesized
    is_fallback: bool = False


class TransitRouteRequest(BaseModel):
    origin: Coordinate
    destination: Coordinate
    mode: RouteMode = "safe"
    preferences: Preferences = Preferences()
    hour: Optional[int] = Field(None, ge=0, le=23)
    session_id: str = "default"


class TransitRouteResponse(BaseModel):
    itinerary: Itinerary
    mode: RouteMode
    hour: int
    weights: WeightVector
    spliced_segments: int
    network_version: int
    warnings: List[str] = []
