from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

import requests
from pydantic import ValidationError as PydanticValidationError

from voxpulse.core.config.models import HealthEndpoint
from voxpulse.core.errors import ProbeResultError, ValidationError
from voxpulse.core.logger import get_logger
from voxpulse.core.redaction import telemetry_redact
from voxpulse.core.telemetry.models import HealthReport, ProbeResult

ProbeOutcome = Union[ProbeResult, Mapping[str, Any]]
Probe = Callable[[], Awaitable[ProbeOutcome]]


def ok(details: Optional[Dict[str, Any]] = None) -> ProbeResult:
    return ProbeResult(healthy=True, details=telemetry_redact(details) if details is not None else None)


def failed(error: str, *, details: Optional[Dict[str, Any]] = None) -> ProbeResult:
    return ProbeResult(healthy=False, error=telemetry_redact(str(error)), details=telemetry_redact(details) if details is not None else None)


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timeout"
    return str(exc) or exc.__class__.__name__


def _coerce(outcome: Any) -> ProbeResult:
    if isinstance(outcome, ProbeResult):
        res = outcome.model_copy()
    elif isinstance(outcome, Mapping):
        try:
            res = ProbeResult.model_validate(dict(outcome))
        except PydanticValidationError as e:
            raise ProbeResultError(f"invalid probe result: {e.error_count()} validation error(s)") from e
    else:
        raise ProbeResultError(f"invalid probe result type: {type(outcome).__name__}")
    res.details = telemetry_redact(res.details) if res.details is not None else None
    res.error = telemetry_redact(res.error) if res.error is not None else None
    return res


class HealthCheckRegistry:
    """
    Named async probes, run one at a time in registration order.

    A probe that raises (or returns a malformed result) is recorded as
    unhealthy and the remaining probes still run. Mapping results need a
    `healthy` key; unknown keys are dropped. With `timeout_seconds`
    unset a hung probe stalls the whole run.
    """

    def __init__(self, *, timeout_seconds: Optional[float] = None, logger: Optional[logging.Logger] = None, clock: Callable[[], float] = time.time):
        self.timeout_seconds = timeout_seconds
        self.logger = logger or get_logger("telemetry")
        self._clock = clock
        self._lock = threading.Lock()
        self._checks: Dict[str, Probe] = {}

    def register(self, name: str, probe: Probe) -> None:
        if not name:
            raise ValidationError("Health check name must not be empty.")
        if not callable(probe):
            raise ValidationError(f"Health probe must be callable: {name}", check=name)
        with self._lock:
            self._checks[str(name)] = probe

    def names(self) -> List[str]:
        with self._lock:
            return list(self._checks.keys())

    async def run_all(self) -> HealthReport:
        with self._lock:
            checks = list(self._checks.items())
        results: Dict[str, ProbeResult] = {}
        for name, probe in checks:
            results[name] = await self._run_one(name, probe)
        overall = all(r.healthy for r in results.values())
        return HealthReport(overall=overall, checks=results, timestamp=self._clock())

    async def is_healthy(self) -> bool:
        report = await self.run_all()
        return report.overall

    async def _run_one(self, name: str, probe: Probe) -> ProbeResult:
        t0 = time.perf_counter()
        try:
            if self.timeout_seconds is not None:
                outcome = await asyncio.wait_for(probe(), timeout=float(self.timeout_seconds))
            else:
                outcome = await probe()
            res = _coerce(outcome)
        except Exception as e:  # noqa: BLE001
            res = ProbeResult(healthy=False, error=telemetry_redact(_error_message(e)))
            self.logger.warning(f"Health check {name} failed: {res.error}")
        res.latency_ms = float((time.perf_counter() - t0) * 1000.0)
        return res


# -------- probe factories --------
def static_probe(details: Optional[Dict[str, Any]] = None) -> Probe:
    async def probe() -> ProbeResult:
        return ok(details)

    return probe


def http_probe(url: str, *, headers: Optional[Dict[str, str]] = None, timeout_seconds: float = 5.0) -> Probe:
    """Probe that is healthy when GET `url` answers with a 2xx status."""

    def _get() -> ProbeResult:
        r = requests.get(url, headers=dict(headers or {}), timeout=float(timeout_seconds))
        details = {"status": int(r.status_code)}
        if r.ok:
            return ok(details)
        return failed(f"HTTP {r.status_code}", details=details)

    async def probe() -> ProbeResult:
        return await asyncio.to_thread(_get)

    return probe


def register_default_checks(registry: HealthCheckRegistry, endpoints: Mapping[str, HealthEndpoint]) -> List[str]:
    names: List[str] = []
    for name, ep in endpoints.items():
        registry.register(name, http_probe(ep.url, headers=ep.headers, timeout_seconds=ep.timeout_seconds))
        names.append(name)
    return names
