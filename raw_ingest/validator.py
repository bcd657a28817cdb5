from datetime import datetime, timezone

from core.errors import PayloadValidationError
from core.telemetry import TelemetrySample, utc_now


def parse_telemetry_payload(payload: dict, device_id: str | None = None) -> TelemetrySample:
    """
    Expected format:
    payload = {
        "device_id": "PUMP_01",          # optional when taken from topic
        "timestamp": 1718000000.0,       # epoch seconds or ISO-8601, optional
        "metrics": {"temperature": 71.2, ...},
        "baselines": {...}               # optional, read by the runner
    }

    NaN / Infinity values pass through; the engine drops them per sample.
    """
    if not isinstance(payload, dict):
        raise PayloadValidationError("Telemetry payload must be a JSON object")

    device_id = payload.get("device_id") or device_id
    if not isinstance(device_id, str) or not device_id:
        raise PayloadValidationError("Telemetry payload missing device_id")

    metrics = payload.get("metrics")
    if not isinstance(metrics, dict) or not metrics:
        raise PayloadValidationError(f"Telemetry for {device_id} has no metrics")

    parsed = {}
    for name, value in metrics.items():
        if not isinstance(name, str):
            raise PayloadValidationError(f"Metric name {name!r} of {device_id} is not a string")
        parsed[name] = _to_float(value, f"Metric {name!r} of {device_id}")

    return TelemetrySample(
        device_id=device_id,
        timestamp=_parse_timestamp(payload.get("timestamp")),
        metrics=parsed,
    )


def parse_baselines(payload: dict) -> dict | None:
    baselines = payload.get("baselines")
    if baselines is None:
        return None

    if not isinstance(baselines, dict):
        raise PayloadValidationError("baselines must map metric names to numbers")

    return {
        name: _to_float(value, f"Baseline {name!r}")
        for name, value in baselines.items()
    }


def _to_float(value, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadValidationError(f"{what} is not numeric: {value!r}")

    try:
        return float(value)
    except OverflowError as exc:
        raise PayloadValidationError(f"{what} is out of float range") from exc


def _parse_timestamp(raw) -> datetime:
    if raw is None:
        return utc_now()

    if isinstance(raw, str):
        try:
            ts = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError as exc:
            raise PayloadValidationError(f"Invalid timestamp: {raw!r}") from exc
        return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)

    epoch = _to_float(raw, "Timestamp")
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise PayloadValidationError(f"Invalid timestamp: {raw!r}") from exc
