# tests/test_safety_model.py
import pytest

from safewalk.models.routing import Preferences, WeightVector
from safewalk.services.safety_model import (
    ClassifierConfig,
    CostConfig,
    WeightModelConfig,
    classify_link,
    compute_weights,
    derive_blind_score,
    edge_cost,
    is_daytime,
)


def make_edge(length=100.0, cctv=0, lamp=0, blind=0.0, dark=0.0):
    return {"length": length, "cctv": cctv, "lamp": lamp, "blind": blind, "dark": dark}


def test_blind_score_narrow_unwatched_road():
    assert derive_blind_score(cctv_count=0, lamp_count=2, width_m=3) == 40


def test_blind_score_wide_road_overrides_penalties():
    assert derive_blind_score(cctv_count=0, lamp_count=2, width_m=15) == 0
    assert derive_blind_score(cctv_count=0, lamp_count=0, width_m=12) == 0


def test_blind_score_all_penalties():
    assert derive_blind_score(cctv_count=0, lamp_count=0, width_m=2) == 50
    assert derive_blind_score(cctv_count=1, lamp_count=1, width_m=6) == 0


def test_daytime_window_is_inclusive():
    assert is_daytime(8)
    assert is_daytime(18)
    assert not is_daytime(7)
    assert not is_daytime(19)


def test_weights_day_and_night():
    prefs = Preferences(cctv=3, blind=3)

    day = compute_weights(prefs, hour=12)
    assert day.light == pytest.approx(0.6)
    assert day.cctv == pytest.approx(4.5)
    assert day.blind == pytest.approx(6.0)

    night = compute_weights(prefs, hour=22)
    assert night.light == pytest.approx(7.5)
    assert night.cctv == day.cctv


def test_fast_mode_zeroes_weights():
    weights = compute_weights(Preferences(cctv=5, blind=5), hour=23, mode="fast")
    assert weights == WeightVector(light=0, cctv=0, blind=0)


def test_legacy_preset_and_overrides():
    config = WeightModelConfig.from_preset("legacy")
    weights = compute_weights(Preferences(cctv=1, blind=5), hour=10, config=config)
    assert weights.light == pytest.approx(0.3)
    assert weights.blind == pytest.approx(6.0)

    tuned = WeightModelConfig.from_preset("standard", night_light_factor=4.0, light_base=None)
    assert tuned.night_light_factor == 4.0
    assert tuned.light_base == 3.0

    with pytest.raises(ValueError):
        WeightModelConfig.from_preset("unknown")


def test_cost_is_floored_for_safe_edges():
    edge = make_edge(length=100, cctv=5, lamp=5, blind=0)
    weights = WeightVector(light=3, cctv=3, blind=3)
    # 100 - 75 - 30 = -5
    assert edge_cost(edge, weights) == 1


def test_cost_with_zero_weights_is_length():
    assert edge_cost(make_edge(length=42, cctv=4, lamp=4, blind=30), WeightVector()) == 42


def test_cost_penalises_blind_spots():
    edge = make_edge(length=100, blind=40)
    assert edge_cost(edge, WeightVector(blind=2)) == 100 + 40 * 2 * 10


def test_custom_floor():
    edge = make_edge(length=10, cctv=10)
    assert edge_cost(edge, WeightVector(cctv=1), CostConfig(min_cost=0.5)) == 0.5


@pytest.mark.parametrize("field", ["cctv", "light"])
def test_cost_never_increases_with_cctv_or_light_weight(field):
    edge = make_edge(length=500, cctv=2, lamp=3, blind=10)
    costs = [edge_cost(edge, WeightVector(**{field: w, "blind": 1})) for w in range(0, 20)]
    assert all(a >= b for a, b in zip(costs, costs[1:]))


def test_cost_never_decreases_with_blind_weight():
    edge = make_edge(length=50, cctv=4, lamp=4, blind=20)
    costs = [edge_cost(edge, WeightVector(cctv=3, light=3, blind=w)) for w in range(0, 20)]
    assert all(a <= b for a, b in zip(costs, costs[1:]))


def test_classify_link_levels():
    weights = WeightVector(light=7.5, cctv=4.5, blind=6.0)
    config = ClassifierConfig()

    level, score = classify_link(make_edge(cctv=3, lamp=3), weights, config)
    assert level == "high"
    assert score == pytest.approx(3 * 7.5 + 3 * 4.5)

    level, _ = classify_link(make_edge(cctv=1, lamp=0), weights, config)
    assert level == "low"

    level, _ = classify_link(make_edge(cctv=0, lamp=1), weights, config)
    assert level == "medium"

    level, _ = classify_link(make_edge(cctv=3, lamp=3, blind=40), weights, config)
    assert level == "low"
