from __future__ import annotations

import os
import time
from typing import Callable, Optional

import psutil

from voxpulse.core.errors import ValidationError
from voxpulse.core.telemetry.alerts import AlertEngine
from voxpulse.core.telemetry.application import ApplicationAggregator
from voxpulse.core.telemetry.health_checks import HealthCheckRegistry
from voxpulse.core.telemetry.models import DashboardData, MetricsHistory
from voxpulse.core.telemetry.resources import ResourceSampler


def process_start_time() -> float:
    return float(psutil.Process(os.getpid()).create_time())


class Dashboard:
    """Read-only composition over the other telemetry components."""

    def __init__(
        self,
        *,
        sampler: ResourceSampler,
        aggregator: ApplicationAggregator,
        alerts: AlertEngine,
        health: HealthCheckRegistry,
        started_at: Optional[float] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.sampler = sampler
        self.aggregator = aggregator
        self.alerts = alerts
        self.health = health
        self._clock = clock
        self.started_at = process_start_time() if started_at is None else float(started_at)

    def uptime_seconds(self) -> float:
        return max(0.0, float(self._clock() - self.started_at))

    async def get_dashboard_data(self) -> DashboardData:
        system = self.sampler.latest()
        application = self.aggregator.current_snapshot()
        active = self.alerts.active_alerts()
        health = await self.health.run_all()
        return DashboardData(
            timestamp=self._clock(),
            system=system,
            application=application,
            alerts=active,
            health=health,
            uptime_seconds=self.uptime_seconds(),
        )

    def get_metrics_history(self, hours: float = 24) -> MetricsHistory:
        if hours < 0:
            raise ValidationError("History window must not be negative.", hours=hours)
        cutoff = self._clock() - float(hours) * 3600.0
        return MetricsHistory(
            hours=float(hours),
            system=[s for s in self.sampler.history() if s.timestamp >= cutoff],
            application=[s for s in self.aggregator.history() if s.timestamp >= cutoff],
        )
