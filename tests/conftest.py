from __future__ import annotations

import pytest

from tests.helpers.fakes import FakeClock, FakeHost, fixed_disk, fixed_network
from voxpulse.core.config.models import MonitoringConfigFile
from voxpulse.core.telemetry.manager import MonitoringSystem


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fake_host(monkeypatch):
    """
    Host figures routed through the real sampler: 25% CPU busy since boot,
    60% memory in use.
    """
    return FakeHost().install(monkeypatch)


@pytest.fixture
def monitoring(fake_host, clock):
    ms = MonitoringSystem(
        cfg=MonitoringConfigFile(enabled=False),
        disk=fixed_disk(),
        network=fixed_network(),
        started_at=clock.time(),
        clock=clock.time,
    )
    yield ms
    ms.stop()
