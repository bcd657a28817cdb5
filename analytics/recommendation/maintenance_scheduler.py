# analytics/recommendation/maintenance_scheduler.py
import logging
import threading
import uuid
from datetime import timedelta

from analytics.recommendation.maintenance_action import MaintenanceActionMapper
from core.telemetry import (
    FailurePrediction,
    MaintenanceSchedule,
    MaintenanceType,
    utc_now,
)

logger = logging.getLogger(__name__)


class MaintenanceScheduler:
    """
    Append-only list of maintenance windows derived from failure predictions.
    Entries are never mutated or removed here; closing a work order is
    handled downstream.
    """

    def __init__(
        self,
        action_mapper: MaintenanceActionMapper | None = None,
        lead_days: int = 7,
        default_horizon_days: int = 30,
        clock=utc_now,
    ):
        self.action_mapper = action_mapper or MaintenanceActionMapper()
        self.lead_days = lead_days
        self.default_horizon_days = default_horizon_days
        self.clock = clock

        self._schedules: list[MaintenanceSchedule] = []
        self._lock = threading.Lock()

    def add_from_prediction(self, prediction: FailurePrediction) -> MaintenanceSchedule:
        action = self.action_mapper.get_action(prediction.risk_level)

        schedule = MaintenanceSchedule(
            id=f"maint_{uuid.uuid4().hex}",
            device_id=prediction.device_id,
            scheduled_date=(
                prediction.predicted_failure_date - timedelta(days=self.lead_days)
            ),
            maintenance_type=MaintenanceType.PREDICTIVE,
            priority=action["priority"],
            estimated_duration=action["estimated_duration_hours"],
        )

        with self._lock:
            self._schedules.append(schedule)

        logger.info(
            "Scheduled %s maintenance %s for %s on %s (priority=%d)",
            schedule.maintenance_type.value,
            schedule.id,
            schedule.device_id,
            schedule.scheduled_date.isoformat(),
            schedule.priority,
        )
        return schedule

    def get_upcoming(self, days: int | None = None, now=None) -> list[MaintenanceSchedule]:
        if days is None:
            days = self.default_horizon_days

        cutoff = (now or self.clock()) + timedelta(days=days)

        with self._lock:
            upcoming = [s for s in self._schedules if s.scheduled_date <= cutoff]

        # sorted() is stable: equal priorities keep insertion order
        return sorted(upcoming, key=lambda s: s.priority)

    def all(self) -> list[MaintenanceSchedule]:
        with self._lock:
            return list(self._schedules)

    def __len__(self):
        with self._lock:
            return len(self._schedules)
