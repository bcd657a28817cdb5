"""
Shared fixtures for the predictive maintenance engine tests.
"""

from datetime import datetime, timezone

import pytest

from core.telemetry import TelemetrySample

FIXED_NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def make_sample():
    def _make(device_id="d1", timestamp=FIXED_NOW, **metrics):
        return TelemetrySample(device_id=device_id, timestamp=timestamp, metrics=metrics)

    return _make
