# core/predictive_maintenance.py
import logging
import threading

from analytics.prognostics.degradation_model import DegradationTracker
from analytics.prognostics.failure_predictor import FailurePredictor
from analytics.recommendation.maintenance_action import MaintenanceActionMapper
from analytics.recommendation.maintenance_scheduler import MaintenanceScheduler
from anomaly.zscore_detector import AnomalyDetector
from core.history_store import HistoryStore
from core.telemetry import (
    ProcessResult,
    RiskLevel,
    TelemetrySample,
    finite_float,
    utc_now,
)
from health.device_health_score import HealthScoreCalculator

logger = logging.getLogger(__name__)


class PredictiveMaintenanceService:
    """
    Predictive Maintenance Engine
    =============================
    Per sample:
        sanitize → anomaly + history → health → degradation
        → failure prediction → (optional) maintenance schedule

    One lock per device: samples of a device are applied one at a time,
    different devices never block each other. The schedule callback runs
    after the device lock is released.
    """

    def __init__(
        self,
        history: HistoryStore | None = None,
        detector: AnomalyDetector | None = None,
        tracker: DegradationTracker | None = None,
        predictor: FailurePredictor | None = None,
        health: HealthScoreCalculator | None = None,
        scheduler: MaintenanceScheduler | None = None,
        detect_before_record: bool = True,
        on_schedule=None,
        clock=utc_now,
    ):
        self.clock = clock

        # "is not None": an empty scheduler has len 0 and is falsy
        self.history = history if history is not None else HistoryStore()
        self.detector = (
            detector if detector is not None else AnomalyDetector(self.history)
        )
        self.tracker = tracker if tracker is not None else DegradationTracker()
        self.predictor = (
            predictor if predictor is not None
            else FailurePredictor(self.tracker, clock=clock)
        )
        self.health = (
            health if health is not None else HealthScoreCalculator(clock=clock)
        )
        self.scheduler = (
            scheduler if scheduler is not None
            else MaintenanceScheduler(clock=clock)
        )

        self.detect_before_record = detect_before_record
        self.on_schedule = on_schedule

        self._device_locks = {}
        self._locks_guard = threading.Lock()

    # =========================================================
    # FACTORY
    # =========================================================
    @classmethod
    def from_config(cls, config: dict, on_schedule=None, clock=utc_now):
        history_cfg = config.get("history", {})
        anomaly_cfg = config.get("anomaly", {})
        degradation_cfg = config.get("degradation", {})
        prognostics_cfg = config.get("prognostics", {})
        health_cfg = config.get("health", {})
        scheduler_cfg = config.get("scheduler", {})

        action_mapper = MaintenanceActionMapper(
            mapping_file=scheduler_cfg.get("mapping_file"),
            lang=scheduler_cfg.get("lang", "en"),
        )

        history = HistoryStore(window_size=history_cfg.get("window_size", 1000))
        tracker = DegradationTracker(
            max_series_length=degradation_cfg.get("max_series_length", 1000),
        )

        return cls(
            history=history,
            detector=AnomalyDetector(
                history,
                min_samples=anomaly_cfg.get("min_samples", 10),
                z_threshold=anomaly_cfg.get("z_threshold", 3.0),
            ),
            tracker=tracker,
            predictor=FailurePredictor(
                tracker,
                action_mapper=action_mapper,
                min_series_length=prognostics_cfg.get("min_series_length", 5),
                failure_threshold=prognostics_cfg.get("failure_threshold", 0.3),
                min_degradation=prognostics_cfg.get("min_degradation", 0.1),
                base_confidence=prognostics_cfg.get("base_confidence", 0.5),
                max_confidence=prognostics_cfg.get("max_confidence", 0.95),
                high_risk_days=prognostics_cfg.get("high_risk_days", 7),
                medium_risk_days=prognostics_cfg.get("medium_risk_days", 30),
                clock=clock,
            ),
            health=HealthScoreCalculator(
                neutral_score=health_cfg.get("neutral_score", 50),
                improving_above=health_cfg.get("improving_above", 80),
                stable_above=health_cfg.get("stable_above", 60),
                clock=clock,
            ),
            scheduler=MaintenanceScheduler(
                action_mapper=action_mapper,
                lead_days=scheduler_cfg.get("lead_days", 7),
                default_horizon_days=scheduler_cfg.get("default_horizon_days", 30),
                clock=clock,
            ),
            detect_before_record=anomaly_cfg.get("detect_before_record", True),
            on_schedule=on_schedule,
            clock=clock,
        )

    # =========================================================
    # PUBLIC API
    # =========================================================
    def process(self, sample: TelemetrySample, baselines: dict) -> ProcessResult:
        sample, baselines = self._sanitize(sample, baselines or {})

        with self._lock_for(sample.device_id):
            if self.detect_before_record:
                anomaly = self.detector.detect(sample)
                self.history.add_data_point(sample)
            else:
                self.history.add_data_point(sample)
                anomaly = self.detector.detect(sample)

            health = self.health.calculate(sample.device_id, sample.metrics, baselines)

            for metric, value in sample.metrics.items():
                if metric in baselines:
                    self.tracker.update(sample.device_id, metric, value, baselines[metric])

            prediction = self.predictor.predict(sample.device_id)

            schedule = None
            if prediction is not None and prediction.risk_level != RiskLevel.LOW:
                schedule = self.scheduler.add_from_prediction(prediction)

        if schedule is not None and self.on_schedule is not None:
            self._emit_schedule(schedule)

        return ProcessResult(anomaly=anomaly, health=health, prediction=prediction)

    def get_upcoming_maintenance(self, days: int | None = None):
        return self.scheduler.get_upcoming(days)

    def get_status(self) -> dict:
        return {
            "devices_tracked": len(self.history.devices()),
            "schedules": len(self.scheduler),
            "detect_before_record": self.detect_before_record,
        }

    # =========================================================
    # INTERNAL
    # =========================================================
    def _lock_for(self, device_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._device_locks.get(device_id)
            if lock is None:
                lock = self._device_locks[device_id] = threading.Lock()
            return lock

    def _emit_schedule(self, schedule):
        # delivery failures must not lose the already committed result
        try:
            self.on_schedule(schedule)
        except Exception:
            logger.exception(
                "Schedule callback failed for %s (%s)", schedule.id, schedule.device_id
            )

    @staticmethod
    def _sanitize(sample: TelemetrySample, baselines: dict):
        """
        Keep only metric values and baselines that convert to finite floats;
        baselines must also be non-zero. No later stage has to divide by,
        or compare against, anything else.
        """
        metrics = {}
        dropped = []
        for metric, raw in sample.metrics.items():
            value = finite_float(raw)
            if value is None:
                dropped.append(metric)
            else:
                metrics[metric] = value

        if dropped:
            logger.warning(
                "Dropping non-numeric or non-finite metrics %s from %s",
                dropped, sample.device_id,
            )
            sample = TelemetrySample(
                device_id=sample.device_id,
                timestamp=sample.timestamp,
                metrics=metrics,
            )

        usable = {}
        for metric, raw in baselines.items():
            baseline = finite_float(raw)
            if baseline:
                usable[metric] = baseline

        if len(usable) != len(baselines):
            logger.debug(
                "Ignoring unusable baselines for %s: %s",
                sample.device_id,
                sorted(set(baselines) - set(usable)),
            )

        return sample, usable
