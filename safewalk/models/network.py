# safewalk/models/network.py

import math
from typing import Any, List, Literal, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _clean_number(value: Any) -> Optional[float]:
    """
    Coerce a raw property value to a non-negative float, or None when the
    value is missing or malformed.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number


class RoadProperties(BaseModel):
    """
    Property set of one road-data feature.

    Several spellings are accepted for each key because regional feeds do not
    agree on column names. Malformed numbers become None and are replaced by
    defaults at ingestion time.
    """

    model_config = ConfigDict(populate_by_name=True)

    link_id: Optional[str] = Field(None, validation_alias=AliasChoices("link_id", "id"))
    start_node: Optional[str] = Field(
        None, validation_alias=AliasChoices("F_NODE", "from_node", "u", "start_node")
    )
    end_node: Optional[str] = Field(
        None, validation_alias=AliasChoices("T_NODE", "to_node", "v", "end_node")
    )
    length_m: Optional[float] = Field(
        None, validation_alias=AliasChoices("LENGTH", "length_m", "length")
    )
    width_m: Optional[float] = Field(
        None, validation_alias=AliasChoices("width", "road_width", "width_m")
    )
    cctv_count: Optional[int] = Field(
        None, validation_alias=AliasChoices("cctv_cnt", "cctv_count")
    )
    lamp_count: Optional[int] = Field(
        None, validation_alias=AliasChoices("lamp_cnt", "lamp_count")
    )
    dark_score: Optional[float] = None
    blind_score: Optional[float] = None

    @field_validator("link_id", "start_node", "end_node", mode="before")
    @classmethod
    def _clean_identifier(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, bool):
            return None
        text = str(value).strip()
        return text or None

    @field_validator("length_m", "width_m", "dark_score", "blind_score", mode="before")
    @classmethod
    def _clean_float(cls, value: Any) -> Optional[float]:
        return _clean_number(value)

    @field_validator("cctv_count", "lamp_count", mode="before")
    @classmethod
    def _clean_count(cls, value: Any) -> Optional[int]:
        number = _clean_number(value)
        return None if number is None else int(number)


class RoadFeature(BaseModel):
    """
    One road segment as delivered by the road-data feed.

    coordinates is the ordered vertex chain as (lon, lat) pairs.
    """

    coordinates: List[Tuple[float, float]]
    properties: RoadProperties = RoadProperties()


class IngestReport(BaseModel):
    """
    Outcome of merging one batch of road features into the network.
    """

    features: int = 0
    edges_inserted: int = 0
    skipped: int = 0
    synthesized_ids: int = 0
    rejected: int = 0
    node_count: int = 0
    edge_count: int = 0
    version: int = 0
    warnings: List[str] = []


class OsmLoadRequest(BaseModel):
    """
    Request body for loading an OpenStreetMap network around a point.
    """

    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    dist_m: float = Field(1000.0, gt=0)
    network_type: str = "walk"
    replace: bool = False


class NetworkStats(BaseModel):
    version: int
    node_count: int
    edge_count: int
    link_count: int


SafetyLevel = Literal["high", "medium", "low"]


class LinkSafety(BaseModel):
    """
    Display classification of a single road link.

    coordinates is a list of [lat, lon] pairs.
    """

    link_id: Optional[str]
    level: SafetyLevel
    score: float
    coordinates: List[List[float]]


class LinkSafetyResponse(BaseModel):
    hour: int
    network_version: int
    links: List[LinkSafety]
