from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Union

from voxpulse.core.config.models import MonitoringConfigFile
from voxpulse.core.logger import get_logger
from voxpulse.core.telemetry.alerts import AlertEngine, AlertRule, default_rules
from voxpulse.core.telemetry.application import ApplicationAggregator
from voxpulse.core.telemetry.dashboard import Dashboard
from voxpulse.core.telemetry.health_checks import HealthCheckRegistry, Probe, register_default_checks
from voxpulse.core.telemetry.models import Alert, AlertSeverity, ApplicationSnapshot, DashboardData, MetricsHistory, ResourceSample
from voxpulse.core.telemetry.resources import DiskProbe, NetworkProbe, ResourceSampler, disk_probe
from voxpulse.core.telemetry.scheduler import DEFAULT_INTERVAL_SECONDS, CollectionScheduler


class MonitoringSystem:
    """
    Telemetry and alerting core for one process.

    Owns the resource sampler, application aggregator, alert engine, health
    registry, dashboard and the collection scheduler. Callers hold a
    reference to one instance instead of sharing module globals.
    """

    def __init__(
        self,
        *,
        cfg: Optional[MonitoringConfigFile] = None,
        logger: Optional[logging.Logger] = None,
        rules: Optional[List[AlertRule]] = None,
        disk: Optional[DiskProbe] = None,
        network: Optional[NetworkProbe] = None,
        started_at: Optional[float] = None,
        clock: Callable[[], float] = time.time,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self.cfg = cfg or MonitoringConfigFile()
        self.logger = logger or get_logger("telemetry")
        self._clock = clock

        self.sampler = ResourceSampler(max_history=self.cfg.max_resource_history, disk=disk or disk_probe(self.cfg.disk_path), network=network, clock=clock)
        self.aggregator = ApplicationAggregator(max_history=self.cfg.max_application_history, max_recent_errors=self.cfg.max_recent_errors, clock=clock)
        self.alerts = AlertEngine(default_rules(self.cfg.thresholds) if rules is None else rules, max_alerts=self.cfg.max_alerts, logger=self.logger, clock=clock)
        self.health = HealthCheckRegistry(timeout_seconds=self.cfg.probe_timeout_seconds, logger=self.logger, clock=clock)
        self.dashboard = Dashboard(sampler=self.sampler, aggregator=self.aggregator, alerts=self.alerts, health=self.health, started_at=started_at, clock=clock)
        self.scheduler = CollectionScheduler(self.collect, interval_seconds=interval_seconds, logger=self.logger)

        self._lock = threading.Lock()
        self._initialized = False

    # -------- lifecycle --------
    def initialize(self) -> bool:
        with self._lock:
            if self._initialized:
                self.logger.warning("Monitoring system already initialized")
                return False
            self._initialized = True
        self.logger.info("Initializing monitoring system...")
        names = register_default_checks(self.health, self.cfg.health_endpoints)
        if names:
            self.logger.info(f"Registered health checks: {', '.join(names)}")
        if self.cfg.enabled:
            self.scheduler.start()
        self.logger.info("Monitoring system initialized")
        return True

    def is_initialized(self) -> bool:
        with self._lock:
            return self._initialized

    def stop(self) -> None:
        self.scheduler.stop()

    def collect(self) -> List[Alert]:
        """One collection tick: sample resources, snapshot counters, evaluate rules."""
        resource = self.sampler.sample()
        snapshot = self.aggregator.snapshot()
        return self.alerts.evaluate(snapshot, resource)

    # -------- recording API --------
    def record_session_start(self) -> None:
        self.aggregator.record_session_start()

    def record_session_end(self, success: bool) -> None:
        self.aggregator.record_session_end(success)

    def record_call(self, success: bool, duration_ms: float) -> None:
        self.aggregator.record_call(success, duration_ms)

    def record_api_request(self, success: bool, response_time_ms: float) -> None:
        self.aggregator.record_api_request(success, response_time_ms)

    def record_inference_request(self, success: bool, response_time_ms: float, tokens: int = 0) -> None:
        self.aggregator.record_inference_request(success, response_time_ms, tokens)

    def record_error(self, kind: str, message: str, trace: Optional[str] = None) -> None:
        self.aggregator.record_error(kind, message, trace)

    # -------- health --------
    def register_check(self, name: str, probe: Probe) -> None:
        self.health.register(name, probe)

    # -------- reads --------
    async def get_dashboard_data(self) -> DashboardData:
        return await self.dashboard.get_dashboard_data()

    def get_metrics_history(self, hours: float = 24) -> MetricsHistory:
        return self.dashboard.get_metrics_history(hours)

    def get_current_metrics(self) -> ApplicationSnapshot:
        return self.aggregator.current_snapshot()

    def get_latest_resources(self) -> Optional[ResourceSample]:
        return self.sampler.latest()

    def get_scheduler_stats(self) -> Dict[str, Any]:
        return self.scheduler.stats()

    # -------- alerts --------
    def create_alert(self, kind: str, severity: Union[str, AlertSeverity], message: str, metadata: Optional[Dict[str, Any]] = None) -> Alert:
        return self.alerts.create_alert(kind, severity, message, metadata)

    def resolve_alert(self, alert_id: str) -> bool:
        return self.alerts.resolve_alert(alert_id)

    def get_active_alerts(self) -> List[Alert]:
        return self.alerts.active_alerts()

    def get_all_alerts(self) -> List[Alert]:
        return self.alerts.all_alerts()

    def get_alerts_by_severity(self, severity: Union[str, AlertSeverity]) -> List[Alert]:
        return self.alerts.alerts_by_severity(severity)
