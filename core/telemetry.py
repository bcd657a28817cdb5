# core/telemetry.py

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Mapping


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def round_half_up(value: float) -> int:
    """
    Round .5 away from -inf, same as JavaScript Math.round.
    Python round() is banker's rounding and would shift day counts.
    """
    return int(math.floor(value + 0.5))


def finite_float(value) -> float | None:
    """
    value as a finite float, or None for anything else:
    non-numbers, bools, NaN/Inf and ints too large for a float.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None

    try:
        value = float(value)
    except OverflowError:
        return None

    return value if math.isfinite(value) else None


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class HealthTrend(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    DEGRADING = "degrading"


class MaintenanceType(str, Enum):
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    PREDICTIVE = "predictive"


# =========================================================
# INPUT
# =========================================================
@dataclass(frozen=True)
class TelemetrySample:
    device_id: str
    timestamp: datetime
    metrics: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self):
        # read-only copy, caller can not mutate a received sample
        object.__setattr__(self, "metrics", MappingProxyType(dict(self.metrics)))

    def to_dict(self) -> dict:
        return {
            "device_id": self.device_id,
            "timestamp": self.timestamp.isoformat(),
            "metrics": dict(self.metrics),
        }


# =========================================================
# OUTPUTS
# =========================================================
@dataclass(frozen=True)
class AnomalyResult:
    device_id: str
    timestamp: datetime
    is_anomaly: bool
    anomaly_score: float
    affected_metrics: tuple[str, ...]
    severity: Severity
    description: str

    def to_dict(self) -> dict:
        return {
            "device_id": self.device_id,
            "timestamp": self.timestamp.isoformat(),
            "is_anomaly": self.is_anomaly,
            "anomaly_score": self.anomaly_score,
            "affected_metrics": list(self.affected_metrics),
            "severity": self.severity.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class FailurePrediction:
    device_id: str
    predicted_failure_date: datetime
    confidence: float
    failure_type: str
    recommended_action: str
    risk_level: RiskLevel
    days_to_failure: int

    def to_dict(self) -> dict:
        return {
            "device_id": self.device_id,
            "predicted_failure_date": self.predicted_failure_date.isoformat(),
            "confidence": self.confidence,
            "failure_type": self.failure_type,
            "recommended_action": self.recommended_action,
            "risk_level": self.risk_level.value,
            "days_to_failure": self.days_to_failure,
        }


@dataclass(frozen=True)
class DeviceHealthScore:
    device_id: str
    overall_score: int
    component_scores: dict[str, float]
    trend: HealthTrend
    last_updated: datetime

    def to_dict(self) -> dict:
        return {
            "device_id": self.device_id,
            "overall_score": self.overall_score,
            "component_scores": dict(self.component_scores),
            "trend": self.trend.value,
            "last_updated": self.last_updated.isoformat(),
        }


@dataclass(frozen=True)
class MaintenanceSchedule:
    id: str
    device_id: str
    scheduled_date: datetime
    maintenance_type: MaintenanceType
    priority: int
    estimated_duration: float  # hours

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "device_id": self.device_id,
            "scheduled_date": self.scheduled_date.isoformat(),
            "maintenance_type": self.maintenance_type.value,
            "priority": self.priority,
            "estimated_duration": self.estimated_duration,
        }


@dataclass(frozen=True)
class ProcessResult:
    anomaly: AnomalyResult
    health: DeviceHealthScore
    prediction: FailurePrediction | None

    def to_dict(self) -> dict:
        return {
            "anomaly": self.anomaly.to_dict(),
            "health": self.health.to_dict(),
            "prediction": self.prediction.to_dict() if self.prediction else None,
        }
