# safewalk/core/config.py
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (.env file).

    Every coefficient of the safety model is tunable here. Weight fields left
    at None take their value from the preset selected by WEIGHT_PRESET.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    APP_NAME: str = "SafeWalk Routing API"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Used to derive the current hour when a request does not carry one
    TIMEZONE: str = "Asia/Seoul"

    # GeoJSON FeatureCollections merged into the graph at startup
    ROAD_DATA_FILES: List[str] = []

    # Road feature defaults for missing/malformed properties
    DEFAULT_LENGTH_M: float = 100.0
    DEFAULT_WIDTH_M: float = 6.0

    # Reject (instead of only flagging) features without explicit node ids
    REQUIRE_EXPLICIT_NODE_IDS: bool = False

    # Blind score derivation
    BLIND_NO_CCTV_PENALTY: float = 20.0
    BLIND_NO_LAMP_PENALTY: float = 10.0
    BLIND_NARROW_PENALTY: float = 20.0
    BLIND_NARROW_WIDTH_M: float = 4.0
    BLIND_WIDE_WIDTH_M: float = 12.0

    # Safety weight model ("standard" or "legacy" coefficient sets)
    WEIGHT_PRESET: Literal["standard", "legacy"] = "standard"
    DAY_START_HOUR: int = 8
    DAY_END_HOUR: int = 18
    LIGHT_BASE_WEIGHT: Optional[float] = None
    DAY_LIGHT_FACTOR: Optional[float] = None
    NIGHT_LIGHT_FACTOR: Optional[float] = None
    CCTV_COEFFICIENT: Optional[float] = None
    BLIND_COEFFICIENT: Optional[float] = None

    # Edge cost function
    COST_CCTV_MULTIPLIER: float = 5.0
    COST_LIGHT_MULTIPLIER: float = 2.0
    COST_BLIND_MULTIPLIER: float = 10.0
    MIN_EDGE_COST: float = 1.0

    # Display classification of links
    CLASSIFY_DARK_MULTIPLIER: float = 5.0
    CLASSIFY_BLIND_MULTIPLIER: float = 5.0
    CLASSIFY_HIGH_THRESHOLD: float = 15.0
    CLASSIFY_MEDIUM_THRESHOLD: float = 5.0

    WALKING_SPEED_KMH: float = 4.5

    # External transit provider
    TRANSIT_API_URL: str = "https://api.odsay.com/v1/api/searchPubTransPathT"
    TRANSIT_API_KEY: Optional[str] = None
    TRANSIT_TIMEOUT_S: float = 5.0
    FALLBACK_WALK_MINUTES: int = 15
    FALLBACK_WALK_DISTANCE_M: float = 500.0


settings = Settings()
