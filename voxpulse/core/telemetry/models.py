from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---- host resources ----
class CpuStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    usage_percent: float
    load_averages: List[float] = Field(default_factory=list)


class MemoryStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    used_bytes: int
    free_bytes: int
    total_bytes: int
    usage_percent: float


class DiskStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    used_bytes: int
    free_bytes: int
    total_bytes: int
    usage_percent: float


class NetworkStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    bytes_in: int
    bytes_out: int
    active_connections: int


class ResourceSample(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: float = Field(default_factory=lambda: time.time())
    cpu: CpuStats
    memory: MemoryStats
    disk: DiskStats
    network: NetworkStats


# ---- application counters ----
class SessionStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    active: int = 0
    total: int = 0
    expired_count: int = 0


class CallStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int = 0
    successful: int = 0
    failed: int = 0
    average_duration_ms: float = 0.0


class ApiStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    average_response_time_ms: float = 0.0


class InferenceStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    average_response_time_ms: float = 0.0
    tokens_consumed: int = 0


class ErrorEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: float
    kind: str
    message: str
    trace: Optional[str] = None


class ErrorStats(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    total: int = 0
    count_by_kind: Dict[str, int] = Field(default_factory=dict)
    recent: List[ErrorEntry] = Field(default_factory=list)


class ApplicationSnapshot(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: float = Field(default_factory=lambda: time.time())
    sessions: SessionStats = Field(default_factory=SessionStats)
    calls: CallStats = Field(default_factory=CallStats)
    api: ApiStats = Field(default_factory=ApiStats)
    inference: InferenceStats = Field(default_factory=InferenceStats)
    errors: ErrorStats = Field(default_factory=ErrorStats)


# ---- alerts ----
class AlertSeverity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, AlertSeverity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {AlertSeverity.low: 0, AlertSeverity.medium: 1, AlertSeverity.high: 2, AlertSeverity.critical: 3}


class AlertLevel(str, Enum):
    info = "info"
    warning = "warning"
    error = "error"


class Alert(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    kind: str
    level: AlertLevel
    severity: AlertSeverity
    title: str
    message: str
    timestamp: float = Field(default_factory=lambda: time.time())
    resolved: bool = False
    resolved_at: Optional[float] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


# ---- health ----
class ProbeResult(BaseModel):
    # probes may report extra fields (e.g. "status"); only the known ones are kept
    model_config = ConfigDict(extra="ignore")

    healthy: bool
    details: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    latency_ms: Optional[float] = None


class HealthReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    overall: bool
    checks: Dict[str, ProbeResult] = Field(default_factory=dict)
    timestamp: float = Field(default_factory=lambda: time.time())


# ---- dashboard ----
class DashboardData(BaseModel):
    model_config = ConfigDict(extra="forbid")

    timestamp: float = Field(default_factory=lambda: time.time())
    system: Optional[ResourceSample] = None
    application: ApplicationSnapshot
    alerts: List[Alert] = Field(default_factory=list)
    health: HealthReport
    uptime_seconds: float


class MetricsHistory(BaseModel):
    model_config = ConfigDict(extra="forbid")

    hours: float
    system: List[ResourceSample] = Field(default_factory=list)
    application: List[ApplicationSnapshot] = Field(default_factory=list)
