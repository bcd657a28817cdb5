# anomaly/zscore_detector.py
import logging

import numpy as np

from core.history_store import HistoryStore
from core.telemetry import AnomalyResult, Severity, TelemetrySample, finite_float

logger = logging.getLogger(__name__)


class AnomalyDetector:
    """
    Z-score anomaly detector against each device's own metric history.
    Reads the HistoryStore, never writes it.
    """

    def __init__(self, history: HistoryStore, min_samples=10, z_threshold=3.0):
        self.history = history
        self.min_samples = min_samples
        self.z_threshold = z_threshold

    def detect(self, sample: TelemetrySample) -> AnomalyResult:
        if not self.history.has_device(sample.device_id):
            return AnomalyResult(
                device_id=sample.device_id,
                timestamp=sample.timestamp,
                is_anomaly=False,
                anomaly_score=0.0,
                affected_metrics=(),
                severity=Severity.LOW,
                description="No data",
            )

        affected = []
        max_score = 0.0

        for metric, value in sample.metrics.items():
            window = self.history.get_window(sample.device_id, metric)

            # insufficient history
            if window is None or len(window) < self.min_samples:
                continue

            value = finite_float(value)
            if value is None:
                continue

            z = self._z_score(value, window)
            if z > self.z_threshold:
                affected.append(metric)
                max_score = max(max_score, z / self.z_threshold)

        if affected:
            logger.debug(
                "Anomaly on %s: %s (score=%.3f)",
                sample.device_id, affected, max_score,
            )

        return AnomalyResult(
            device_id=sample.device_id,
            timestamp=sample.timestamp,
            is_anomaly=bool(affected),
            anomaly_score=min(max_score, 1.0),
            affected_metrics=tuple(affected),
            severity=self._severity(max_score),
            description=(
                f"Anomaly in {', '.join(affected)}" if affected else "Normal"
            ),
        )

    # =========================================================
    # INTERNAL
    # =========================================================
    @staticmethod
    def _z_score(value, window) -> float:
        values = np.asarray(window, dtype=float)

        mean = float(values.mean())
        std = float(values.std())  # population (ddof=0)

        if std == 0:
            std = 1.0

        return abs(value - mean) / std

    @staticmethod
    def _severity(max_score: float) -> Severity:
        # thresholds apply to the unclamped score
        if max_score > 2:
            return Severity.CRITICAL
        elif max_score > 1.5:
            return Severity.HIGH
        elif max_score > 1:
            return Severity.MEDIUM
        return Severity.LOW
