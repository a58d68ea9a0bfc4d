from __future__ import annotations

import itertools
import logging
import threading
import time
import uuid
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Union

from voxpulse.core.config.models import AlertThresholds
from voxpulse.core.errors import RuleConfigError, ValidationError
from voxpulse.core.logger import get_logger
from voxpulse.core.redaction import telemetry_redact
from voxpulse.core.telemetry.models import Alert, AlertLevel, AlertSeverity, ApplicationSnapshot, ResourceSample

Condition = Callable[[ApplicationSnapshot, Optional[ResourceSample]], bool]


@dataclass(frozen=True)
class AlertRule:
    name: str
    severity: AlertSeverity
    message: str
    condition: Condition


def _level_for(severity: AlertSeverity) -> AlertLevel:
    if severity == AlertSeverity.critical:
        return AlertLevel.error
    if severity == AlertSeverity.high:
        return AlertLevel.warning
    return AlertLevel.info


def _ratio(part: int, total: int) -> Optional[float]:
    if total <= 0:
        return None
    return part / total


def default_rules(th: Optional[AlertThresholds] = None) -> List[AlertRule]:
    th = th or AlertThresholds()

    def low_success(s: ApplicationSnapshot, _r: Optional[ResourceSample]) -> bool:
        rate = _ratio(s.calls.successful, s.calls.total)
        return rate is not None and rate < th.call_success_rate_min

    def high_memory(_s: ApplicationSnapshot, r: Optional[ResourceSample]) -> bool:
        return r is not None and r.memory.usage_percent > th.memory_usage_max_percent

    def api_failures(s: ApplicationSnapshot, _r: Optional[ResourceSample]) -> bool:
        rate = _ratio(s.api.failed_requests, s.api.total_requests)
        return rate is not None and rate > th.api_failure_rate_max

    def llm_failures(s: ApplicationSnapshot, _r: Optional[ResourceSample]) -> bool:
        rate = _ratio(s.inference.failed_requests, s.inference.total_requests)
        return rate is not None and rate > th.inference_failure_rate_max

    return [
        AlertRule("high_error_rate", AlertSeverity.high, "High error rate detected", lambda s, _r: s.errors.total > th.error_total_max),
        AlertRule("low_success_rate", AlertSeverity.medium, "Low call success rate detected", low_success),
        AlertRule("high_memory_usage", AlertSeverity.high, "High memory usage detected", high_memory),
        AlertRule("api_failures", AlertSeverity.medium, "High API failure rate detected", api_failures),
        AlertRule("llm_failures", AlertSeverity.high, "High LLM failure rate detected", llm_failures),
    ]


def parse_severity(severity: Union[str, AlertSeverity]) -> AlertSeverity:
    if isinstance(severity, AlertSeverity):
        return severity
    try:
        return AlertSeverity(str(severity).lower())
    except ValueError as e:
        raise ValidationError(f"Unknown alert severity: {severity}", severity=str(severity)) from e


class AlertEngine:
    """
    Evaluates static rules against snapshots and keeps a bounded alert ledger.

    There is no deduplication: a rule that stays true produces one alert per
    evaluation. Eviction is FIFO regardless of resolved state.
    """

    def __init__(self, rules: Optional[Iterable[AlertRule]] = None, *, max_alerts: int = 500, logger: Optional[logging.Logger] = None, clock: Callable[[], float] = time.time):
        self.logger = logger or get_logger("telemetry")
        self.max_alerts = max(1, int(max_alerts))
        self._clock = clock
        self._rules: List[AlertRule] = []
        seen = set()
        for rule in (default_rules() if rules is None else rules):
            if not rule.name:
                raise RuleConfigError("Alert rule name must not be empty.")
            if rule.name in seen:
                raise RuleConfigError(f"Duplicate alert rule: {rule.name}", rule=rule.name)
            if not callable(rule.condition):
                raise RuleConfigError(f"Alert rule condition must be callable: {rule.name}", rule=rule.name)
            seen.add(rule.name)
            self._rules.append(rule)
        self._lock = threading.Lock()
        self._alerts: Deque[Alert] = deque(maxlen=self.max_alerts)
        self._seq = itertools.count(1)

    @property
    def rules(self) -> List[AlertRule]:
        return list(self._rules)

    def evaluate(self, snapshot: ApplicationSnapshot, latest_resource: Optional[ResourceSample] = None) -> List[Alert]:
        created: List[Alert] = []
        for rule in self._rules:
            if rule.condition(snapshot, latest_resource):
                created.append(
                    self.create_alert(
                        rule.name,
                        rule.severity,
                        rule.message,
                        {
                            "metrics": {
                                "calls": snapshot.calls.model_dump(),
                                "api": snapshot.api.model_dump(),
                                "inference": snapshot.inference.model_dump(),
                                "errors": {"total": snapshot.errors.total, "count_by_kind": dict(snapshot.errors.count_by_kind)},
                            }
                        },
                    )
                )
        return created

    def create_alert(self, kind: str, severity: Union[str, AlertSeverity], message: str, metadata: Optional[Dict[str, Any]] = None) -> Alert:
        sev = parse_severity(severity)
        now = self._clock()
        alert = Alert(
            id=f"alert_{int(now * 1000)}_{next(self._seq):06d}_{uuid.uuid4().hex[:9]}",
            kind=str(kind),
            level=_level_for(sev),
            severity=sev,
            title=f"{sev.value.upper()}: {kind}",
            message=str(message),
            timestamp=now,
            metadata=telemetry_redact(metadata or {}),
        )
        with self._lock:
            self._alerts.append(alert)
        self.logger.warning(f"ALERT [{sev.value.upper()}]: {alert.message} ({alert.id})")
        return alert.model_copy(deep=True)

    def resolve_alert(self, alert_id: str) -> bool:
        with self._lock:
            alert = next((a for a in self._alerts if a.id == alert_id), None)
            if alert is None or alert.resolved:
                return False
            alert.resolved = True
            alert.resolved_at = self._clock()
            title = alert.title
        self.logger.info(f"Alert resolved: {title} ({alert_id})")
        return True

    # -------- queries --------
    def all_alerts(self) -> List[Alert]:
        with self._lock:
            return [a.model_copy(deep=True) for a in self._alerts]

    def active_alerts(self) -> List[Alert]:
        with self._lock:
            return [a.model_copy(deep=True) for a in self._alerts if not a.resolved]

    def alerts_by_severity(self, severity: Union[str, AlertSeverity]) -> List[Alert]:
        sev = parse_severity(severity)
        with self._lock:
            return [a.model_copy(deep=True) for a in self._alerts if a.severity == sev]
