class EngineError(Exception):
    """Base class for predictive maintenance engine errors."""


class InvalidBaselineError(EngineError):
    def __init__(self, device_id, metric, baseline):
        super().__init__(
            f"Invalid baseline {baseline!r} for {device_id}:{metric} "
            "(must be finite and non-zero)"
        )
        self.device_id = device_id
        self.metric = metric
        self.baseline = baseline


class InvalidMetricValueError(EngineError):
    def __init__(self, device_id, metric, value):
        super().__init__(
            f"Non-numeric or non-finite value {value!r} for {device_id}:{metric}"
        )
        self.device_id = device_id
        self.metric = metric
        self.value = value


class PayloadValidationError(EngineError, ValueError):
    """Raised by ingestion adapters for malformed telemetry payloads."""
