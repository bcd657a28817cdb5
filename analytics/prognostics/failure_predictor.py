# analytics/prognostics/failure_predictor.py
import logging
from datetime import timedelta

from analytics.prognostics.degradation_model import DegradationTracker
from analytics.recommendation.maintenance_action import MaintenanceActionMapper
from core.telemetry import FailurePrediction, RiskLevel, round_half_up, utc_now

logger = logging.getLogger(__name__)


class FailurePredictor:
    def __init__(
        self,
        tracker: DegradationTracker,
        action_mapper: MaintenanceActionMapper | None = None,
        min_series_length: int = 5,
        failure_threshold: float = 0.3,
        min_degradation: float = 0.1,
        base_confidence: float = 0.5,
        max_confidence: float = 0.95,
        high_risk_days: int = 7,
        medium_risk_days: int = 30,
        clock=utc_now,
    ):
        """
        failure_threshold: degradation ratio treated as failure
        min_degradation: device must already be degraded this much
        """
        self.tracker = tracker
        self.action_mapper = action_mapper or MaintenanceActionMapper()
        self.min_series_length = min_series_length
        self.failure_threshold = failure_threshold
        self.min_degradation = min_degradation
        self.base_confidence = base_confidence
        self.max_confidence = max_confidence
        self.high_risk_days = high_risk_days
        self.medium_risk_days = medium_risk_days
        self.clock = clock

    def predict(self, device_id: str, now=None) -> FailurePrediction | None:
        """
        Two-point linear extrapolation on the most degraded metric.

        rate = (last - first) / len(series)
        days = (failure_threshold - degradation) / rate

        Intentionally not a regression fit: the result stays explainable
        from the first and last recorded ratio alone.
        """
        series = self.tracker.snapshot(device_id)
        if not series:
            return None

        max_degradation = 0.0
        critical_metric = ""
        rate = 0.0

        for metric, ratios in series.items():
            if len(ratios) < self.min_series_length:
                continue

            degradation = ratios[-1]
            avg_rate = (ratios[-1] - ratios[0]) / len(ratios)

            if degradation > max_degradation:
                max_degradation = degradation
                critical_metric = metric
                rate = avg_rate

        # stable, improving or not degraded enough
        if max_degradation < self.min_degradation or rate <= 0:
            return None

        days = max(
            1, round_half_up((self.failure_threshold - max_degradation) / rate)
        )
        risk_level = self._risk_level(days)
        action = self.action_mapper.get_action(risk_level)

        now = now or self.clock()

        prediction = FailurePrediction(
            device_id=device_id,
            predicted_failure_date=now + timedelta(days=days),
            confidence=min(
                self.max_confidence, self.base_confidence + max_degradation
            ),
            failure_type=f"{critical_metric} degradation",
            recommended_action=action["action_text"],
            risk_level=risk_level,
            days_to_failure=days,
        )

        logger.debug(
            "Prediction for %s: %s in %d days (rate=%.5f, risk=%s)",
            device_id, prediction.failure_type, days, rate, risk_level.value,
        )
        return prediction

    def _risk_level(self, days: int) -> RiskLevel:
        if days < self.high_risk_days:
            return RiskLevel.HIGH
        elif days < self.medium_risk_days:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW
