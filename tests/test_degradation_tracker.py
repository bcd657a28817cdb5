import math

import pytest

from analytics.prognostics.degradation_model import DegradationTracker
from core.errors import InvalidBaselineError, InvalidMetricValueError


def test_records_normalized_ratio():
    tracker = DegradationTracker()

    for value in (100, 98, 95, 90, 85, 80):
        tracker.update("d1", "temp", value, 100)

    assert tracker.get_series("d1", "temp") == pytest.approx(
        [0.0, 0.02, 0.05, 0.10, 0.15, 0.20]
    )


def test_value_above_baseline_gives_negative_ratio():
    tracker = DegradationTracker()
    tracker.update("d1", "temp", 120, 100)

    assert tracker.get_series("d1", "temp") == pytest.approx([-0.2])


@pytest.mark.parametrize("baseline", [0, 0.0, math.nan, math.inf])
def test_unusable_baseline_is_rejected(baseline):
    tracker = DegradationTracker()

    with pytest.raises(InvalidBaselineError):
        tracker.update("d1", "temp", 50.0, baseline)

    assert tracker.metrics("d1") == []


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_value_is_rejected(value):
    tracker = DegradationTracker()

    with pytest.raises(InvalidMetricValueError):
        tracker.update("d1", "temp", value, 100)


def test_series_is_bounded_by_sliding_window():
    tracker = DegradationTracker(max_series_length=3)

    for value in (100, 90, 80, 70, 60):
        tracker.update("d1", "temp", value, 100)

    assert tracker.get_series("d1", "temp") == pytest.approx([0.2, 0.3, 0.4])


def test_unbounded_series_when_limit_disabled():
    tracker = DegradationTracker(max_series_length=None)

    for _ in range(2500):
        tracker.update("d1", "temp", 99, 100)

    assert len(tracker.get_series("d1", "temp")) == 2500


def test_snapshot_is_detached_copy():
    tracker = DegradationTracker()
    tracker.update("d1", "temp", 90, 100)
    tracker.update("d1", "pressure", 4, 5)

    snapshot = tracker.snapshot("d1")
    snapshot["temp"].append(1.0)

    assert list(snapshot) == ["temp", "pressure"]
    assert tracker.get_series("d1", "temp") == pytest.approx([0.1])
    assert tracker.snapshot("unknown") == {}


def test_clear_removes_device_series():
    tracker = DegradationTracker()
    tracker.update("d1", "temp", 90, 100)
    tracker.clear("d1")

    assert tracker.metrics("d1") == []


@pytest.mark.parametrize("baseline", [None, "100", True, 10**400])
def test_non_numeric_baseline_is_rejected(baseline):
    with pytest.raises(InvalidBaselineError):
        DegradationTracker().update("d1", "temp", 50.0, baseline)


@pytest.mark.parametrize("value", [None, "50", 10**400])
def test_non_numeric_value_is_rejected(value):
    with pytest.raises(InvalidMetricValueError):
        DegradationTracker().update("d1", "temp", value, 100)
