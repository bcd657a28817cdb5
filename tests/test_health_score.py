import math
from datetime import datetime, timedelta, timezone

import pytest

from core.telemetry import HealthTrend
from health.device_health_score import HealthScoreCalculator
from health.state_mapping import score_to_trend


@pytest.fixture
def calculator(clock):
    return HealthScoreCalculator(clock=clock)


def test_no_baselines_gives_neutral_score(calculator):
    score = calculator.calculate("d1", {"temp": 70.0}, {})

    assert score.overall_score == 50
    assert score.component_scores == {}
    assert score.trend is HealthTrend.DEGRADING


def test_component_scores_are_capped_at_100(calculator, fixed_now):
    score = calculator.calculate(
        "d1",
        {"temp": 90.0, "pressure": 120.0, "flow": 3.0},
        {"temp": 100.0, "pressure": 100.0},
    )

    assert score.component_scores == {"temp": pytest.approx(90.0), "pressure": 100.0}
    assert score.overall_score == 95
    assert score.trend is HealthTrend.IMPROVING
    assert score.last_updated == fixed_now


@pytest.mark.parametrize(
    "value, overall, trend",
    [
        (70.0, 70, HealthTrend.STABLE),
        (60.0, 60, HealthTrend.DEGRADING),
        (80.0, 80, HealthTrend.STABLE),
        (80.4, 80, HealthTrend.IMPROVING),
        (62.5, 63, HealthTrend.STABLE),
    ],
)
def test_overall_score_and_trend(calculator, value, overall, trend):
    score = calculator.calculate("d1", {"m": value}, {"m": 100.0})

    assert score.overall_score == overall
    assert score.trend is trend


def test_unusable_baselines_and_values_are_skipped(calculator):
    score = calculator.calculate(
        "d1",
        {"temp": 50.0, "pressure": 5.0, "flow": math.nan},
        {"temp": 0, "pressure": 10.0, "flow": 10.0},
    )

    assert score.component_scores == {"pressure": pytest.approx(50.0)}
    assert score.overall_score == 50


def test_identical_inputs_give_identical_scores():
    ticks = iter([
        datetime(2026, 1, 1, tzinfo=timezone.utc),
        datetime(2026, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=1),
    ])
    calculator = HealthScoreCalculator(clock=lambda: next(ticks))
    metrics, baselines = {"temp": 85.0, "rpm": 1400.0}, {"temp": 100.0, "rpm": 1500.0}

    first = calculator.calculate("d1", metrics, baselines)
    second = calculator.calculate("d1", metrics, baselines)

    assert first.last_updated != second.last_updated
    assert (first.overall_score, first.component_scores, first.trend) == (
        second.overall_score, second.component_scores, second.trend,
    )


def test_score_to_trend_thresholds_are_configurable():
    assert score_to_trend(75, improving_above=70, stable_above=40) is HealthTrend.IMPROVING
    assert score_to_trend(41, improving_above=70, stable_above=40) is HealthTrend.STABLE
    assert score_to_trend(40, improving_above=70, stable_above=40) is HealthTrend.DEGRADING


def test_malformed_inputs_do_not_raise(calculator):
    score = calculator.calculate(
        "d1",
        {"temp": None, "rpm": "1500", "flow": 4, "big": 10**400},
        {"temp": 100, "rpm": 1500, "flow": 5, "big": 10},
    )

    assert score.component_scores == {"flow": pytest.approx(80.0)}

    huge_baseline = calculator.calculate("d1", {"temp": 90.0}, {"temp": 10**400})
    assert huge_baseline.overall_score == 50
