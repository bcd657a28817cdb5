import logging
from collections import deque

from core.telemetry import TelemetrySample, finite_float

logger = logging.getLogger(__name__)


class HistoryStore:
    """
    Metric History Store
    ====================
    - Per device + metric window
    - Fixed capacity, oldest value evicted first
    - Insertion order == time order
    - Non-numeric and non-finite values are ignored, never stored
    """

    def __init__(self, window_size=1000):
        if window_size < 1:
            raise ValueError(f"window_size must be positive, got {window_size}")

        self.window_size = window_size
        self.buffers = {}

    # =========================================================
    # PUBLIC API
    # =========================================================
    def add_data_point(self, sample: TelemetrySample):
        device = self.buffers.setdefault(sample.device_id, {})

        for metric, raw in sample.metrics.items():
            value = finite_float(raw)
            if value is None:
                logger.debug(
                    "Skipping non-numeric or non-finite value %r for %s:%s",
                    raw, sample.device_id, metric,
                )
                continue

            if metric not in device:
                device[metric] = deque(maxlen=self.window_size)

            device[metric].append(value)

    def has_device(self, device_id) -> bool:
        return device_id in self.buffers

    def devices(self) -> list[str]:
        return list(self.buffers)

    def window_length(self, device_id, metric) -> int:
        window = self.buffers.get(device_id, {}).get(metric)
        return len(window) if window is not None else 0

    def get_window(self, device_id, metric) -> list[float] | None:
        window = self.buffers.get(device_id, {}).get(metric)

        if window is None:
            return None

        return list(window)

    def clear(self, device_id):
        """Administrative eviction of everything recorded for a device."""
        self.buffers.pop(device_id, None)
