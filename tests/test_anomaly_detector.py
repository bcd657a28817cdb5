import pytest

from anomaly.zscore_detector import AnomalyDetector
from core.history_store import HistoryStore
from core.telemetry import Severity


def _detector_with_history(make_sample, values, metric="temp"):
    history = HistoryStore()
    for value in values:
        history.add_data_point(make_sample(**{metric: value}))
    return AnomalyDetector(history)


def test_no_history_returns_no_data(make_sample):
    detector = AnomalyDetector(HistoryStore())

    result = detector.detect(make_sample(temp=1000.0))

    assert result.is_anomaly is False
    assert result.anomaly_score == 0.0
    assert result.affected_metrics == ()
    assert result.severity is Severity.LOW
    assert result.description == "No data"


def test_metrics_with_insufficient_history_are_skipped(make_sample):
    detector = _detector_with_history(make_sample, [5.0] * 9)

    result = detector.detect(make_sample(temp=5000.0))

    assert result.is_anomaly is False
    assert result.description == "Normal"


def test_value_within_one_sigma_is_normal(make_sample):
    # mean 5.5, population std ~2.87
    detector = _detector_with_history(make_sample, [float(v) for v in range(1, 11)])

    for value in (5.5, 3.0, 8.0):
        result = detector.detect(make_sample(temp=value))
        assert result.is_anomaly is False
        assert result.anomaly_score == 0.0


def test_identical_window_uses_unit_sigma(make_sample):
    detector = _detector_with_history(make_sample, [5.0] * 10)

    result = detector.detect(make_sample(temp=50.0))

    assert result.is_anomaly is True
    assert result.affected_metrics == ("temp",)
    assert result.anomaly_score == 1.0
    assert result.severity is Severity.CRITICAL
    assert result.description == "Anomaly in temp"


def test_z_equal_to_threshold_is_not_anomalous(make_sample):
    # mean 1, std 1
    detector = _detector_with_history(make_sample, [0.0, 2.0] * 5)

    assert detector.detect(make_sample(temp=4.0)).is_anomaly is False
    assert detector.detect(make_sample(temp=-2.0)).is_anomaly is False


@pytest.mark.parametrize(
    "value, severity",
    [(4.5, Severity.MEDIUM), (6.0, Severity.HIGH), (8.0, Severity.CRITICAL)],
)
def test_severity_uses_unclamped_score(make_sample, value, severity):
    detector = _detector_with_history(make_sample, [0.0, 2.0] * 5)

    result = detector.detect(make_sample(temp=value))

    assert result.is_anomaly is True
    assert result.severity is severity
    assert result.anomaly_score == 1.0


def test_only_outlying_metrics_are_reported(make_sample):
    history = HistoryStore()
    for _ in range(10):
        history.add_data_point(make_sample(temp=20.0, pressure=5.0, flow=1.0))
    detector = AnomalyDetector(history)

    result = detector.detect(make_sample(temp=20.0, pressure=50.0, flow=10.0))

    assert result.is_anomaly is True
    assert result.affected_metrics == ("pressure", "flow")
    assert result.description == "Anomaly in pressure, flow"


def test_detect_does_not_modify_history(make_sample):
    detector = _detector_with_history(make_sample, [1.0] * 10)

    detector.detect(make_sample(temp=2.0))

    assert detector.history.window_length("d1", "temp") == 10


def test_custom_threshold_and_min_samples(make_sample):
    history = HistoryStore()
    for value in (0.0, 2.0, 0.0, 2.0):
        history.add_data_point(make_sample(temp=value))
    detector = AnomalyDetector(history, min_samples=4, z_threshold=2.0)

    result = detector.detect(make_sample(temp=3.5))

    # z = 2.5, score = 1.25
    assert result.is_anomaly is True
    assert result.severity is Severity.MEDIUM
