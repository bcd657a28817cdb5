# analytics/prognostics/degradation_model.py
from collections import deque

from core.errors import InvalidBaselineError, InvalidMetricValueError
from core.telemetry import finite_float


class DegradationTracker:
    """
    Normalized degradation ratio per device + metric:

        ratio = (baseline - value) / baseline

    0.0 means on baseline, positive means below baseline (degrading).
    Series are bounded by max_series_length (sliding window, oldest dropped);
    pass None for unbounded growth.
    """

    def __init__(self, max_series_length: int | None = 1000):
        self.max_series_length = max_series_length
        self.series = {}

    def update(self, device_id: str, metric: str, value: float, baseline: float):
        checked_baseline = finite_float(baseline)
        if not checked_baseline:
            raise InvalidBaselineError(device_id, metric, baseline)

        checked_value = finite_float(value)
        if checked_value is None:
            raise InvalidMetricValueError(device_id, metric, value)

        baseline, value = checked_baseline, checked_value

        device = self.series.setdefault(device_id, {})
        if metric not in device:
            device[metric] = deque(maxlen=self.max_series_length)

        device[metric].append((baseline - value) / baseline)

    def get_series(self, device_id: str, metric: str) -> list[float]:
        return list(self.series.get(device_id, {}).get(metric, ()))

    def metrics(self, device_id: str) -> list[str]:
        return list(self.series.get(device_id, {}))

    def snapshot(self, device_id: str) -> dict[str, list[float]]:
        """Copy of every series of a device, in first-seen metric order."""
        return {
            metric: list(values)
            for metric, values in self.series.get(device_id, {}).items()
        }

    def clear(self, device_id: str):
        self.series.pop(device_id, None)
