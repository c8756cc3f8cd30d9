# safewalk/services/safety_model.py
"""
Safety scoring: blind-spot derivation, time-dependent weight vectors,
edge traversal cost and display classification of road links.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from safewalk.core.config import Settings, settings
from safewalk.models.network import SafetyLevel
from safewalk.models.routing import Preferences, RouteMode, WeightVector

# Two coefficient sets exist for the weight model; neither is canonical.
WEIGHT_PRESETS = {
    "standard": {
        "light_base": 3.0,
        "day_light_factor": 0.2,
        "night_light_factor": 2.5,
        "cctv_coefficient": 1.5,
        "blind_coefficient": 2.0,
    },
    "legacy": {
        "light_base": 3.0,
        "day_light_factor": 0.1,
        "night_light_factor": 2.5,
        "cctv_coefficient": 1.5,
        "blind_coefficient": 1.2,
    },
}

FAST_WEIGHTS = WeightVector(light=0.0, cctv=0.0, blind=0.0)


@dataclass(frozen=True)
class BlindScoreConfig:
    no_cctv_penalty: float = 20.0
    no_lamp_penalty: float = 10.0
    narrow_penalty: float = 20.0
    narrow_width_m: float = 4.0
    wide_width_m: float = 12.0

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "BlindScoreConfig":
        return cls(
            no_cctv_penalty=s.BLIND_NO_CCTV_PENALTY,
            no_lamp_penalty=s.BLIND_NO_LAMP_PENALTY,
            narrow_penalty=s.BLIND_NARROW_PENALTY,
            narrow_width_m=s.BLIND_NARROW_WIDTH_M,
            wide_width_m=s.BLIND_WIDE_WIDTH_M,
        )


@dataclass(frozen=True)
class WeightModelConfig:
    day_start_hour: int = 8
    day_end_hour: int = 18
    light_base: float = 3.0
    day_light_factor: float = 0.2
    night_light_factor: float = 2.5
    cctv_coefficient: float = 1.5
    blind_coefficient: float = 2.0

    @classmethod
    def from_preset(cls, name: str, **overrides: Any) -> "WeightModelConfig":
        if name not in WEIGHT_PRESETS:
            raise ValueError(f"Unknown weight preset {name!r}")
        values = dict(WEIGHT_PRESETS[name])
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "WeightModelConfig":
        return cls.from_preset(
            s.WEIGHT_PRESET,
            day_start_hour=s.DAY_START_HOUR,
            day_end_hour=s.DAY_END_HOUR,
            light_base=s.LIGHT_BASE_WEIGHT,
            day_light_factor=s.DAY_LIGHT_FACTOR,
            night_light_factor=s.NIGHT_LIGHT_FACTOR,
            cctv_coefficient=s.CCTV_COEFFICIENT,
            blind_coefficient=s.BLIND_COEFFICIENT,
        )


@dataclass(frozen=True)
class CostConfig:
    cctv_multiplier: float = 5.0
    light_multiplier: float = 2.0
    blind_multiplier: float = 10.0
    min_cost: float = 1.0

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "CostConfig":
        return cls(
            cctv_multiplier=s.COST_CCTV_MULTIPLIER,
            light_multiplier=s.COST_LIGHT_MULTIPLIER,
            blind_multiplier=s.COST_BLIND_MULTIPLIER,
            min_cost=s.MIN_EDGE_COST,
        )


@dataclass(frozen=True)
class ClassifierConfig:
    dark_multiplier: float = 5.0
    blind_multiplier: float = 5.0
    high_threshold: float = 15.0
    medium_threshold: float = 5.0

    @classmethod
    def from_settings(cls, s: Settings = settings) -> "ClassifierConfig":
        return cls(
            dark_multiplier=s.CLASSIFY_DARK_MULTIPLIER,
            blind_multiplier=s.CLASSIFY_BLIND_MULTIPLIER,
            high_threshold=s.CLASSIFY_HIGH_THRESHOLD,
            medium_threshold=s.CLASSIFY_MEDIUM_THRESHOLD,
        )


def derive_blind_score(
    cctv_count: int,
    lamp_count: int,
    width_m: float,
    config: BlindScoreConfig = BlindScoreConfig(),
) -> float:
    """
    Low-visibility risk of a road link from its infrastructure.

    Missing surveillance, missing lighting and narrow width each add a
    penalty; a wide road is always scored 0.
    """
    score = 0.0
    if cctv_count == 0:
        score += config.no_cctv_penalty
    if lamp_count == 0:
        score += config.no_lamp_penalty
    if width_m < config.narrow_width_m:
        score += config.narrow_penalty
    if width_m >= config.wide_width_m:
        score = 0.0
    return score


def is_daytime(hour: int, config: WeightModelConfig = WeightModelConfig()) -> bool:
    return config.day_start_hour <= hour <= config.day_end_hour


def compute_weights(
    preferences: Preferences,
    hour: int,
    mode: RouteMode = "safe",
    config: WeightModelConfig = WeightModelConfig(),
) -> WeightVector:
    """
    Build the weight vector for one route request.

    Lighting matters little by day and a lot at night; surveillance and
    blind-spot weights scale with the user's preferences. The fast mode
    zeroes everything so that cost degenerates to physical length.
    """
    if mode == "fast":
        return FAST_WEIGHTS

    factor = config.day_light_factor if is_daytime(hour, config) else config.night_light_factor
    return WeightVector(
        light=config.light_base * factor,
        cctv=preferences.cctv * config.cctv_coefficient,
        blind=preferences.blind * config.blind_coefficient,
    )


def edge_cost(
    edge: Mapping[str, Any],
    weights: WeightVector,
    config: CostConfig = CostConfig(),
) -> float:
    """
    Traversal cost of one edge: its length, reduced by surveillance and
    lighting, increased by blind score. Never below config.min_cost, so
    Dijkstra always sees strictly positive weights.
    """
    cost = (
        edge["length"]
        - edge["cctv"] * weights.cctv * config.cctv_multiplier
        - edge["lamp"] * weights.light * config.light_multiplier
        + edge["blind"] * weights.blind * config.blind_multiplier
    )
    return max(config.min_cost, cost)


def safety_score(
    edge: Mapping[str, Any],
    weights: WeightVector,
    config: ClassifierConfig = ClassifierConfig(),
) -> float:
    return (
        edge["lamp"] * weights.light
        + edge["cctv"] * weights.cctv
        - edge.get("dark", 0.0) * weights.light * config.dark_multiplier
        - edge["blind"] * weights.blind * config.blind_multiplier
    )


def classify_link(
    edge: Mapping[str, Any],
    weights: WeightVector,
    config: ClassifierConfig = ClassifierConfig(),
) -> Tuple[SafetyLevel, float]:
    score = safety_score(edge, weights, config)
    if score > config.high_threshold:
        return "high", score
    if score > config.medium_threshold:
        return "medium", score
    return "low", score


def resolve_hour(hour: Optional[int], timezone: str = settings.TIMEZONE) -> int:
    """
    Return the request hour, or the current hour in the configured timezone.
    """
    if hour is not None:
        return hour
    return datetime.now(ZoneInfo(timezone)).hour
