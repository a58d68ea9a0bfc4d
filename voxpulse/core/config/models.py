from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AlertThresholds(BaseModel):
    model_config = ConfigDict(extra="forbid")
    error_total_max: int = Field(default=10, ge=0)
    call_success_rate_min: float = Field(default=0.8, ge=0.0, le=1.0)
    memory_usage_max_percent: float = Field(default=90.0, ge=0.0, le=100.0)
    api_failure_rate_max: float = Field(default=0.1, ge=0.0, le=1.0)
    inference_failure_rate_max: float = Field(default=0.05, ge=0.0, le=1.0)


class HealthEndpoint(BaseModel):
    model_config = ConfigDict(extra="forbid")
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    timeout_seconds: float = Field(default=5.0, gt=0.0, le=60.0)

    @field_validator("url")
    @classmethod
    def _http_only(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("health endpoint url must be http(s)")
        return v


class MonitoringConfigFile(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    max_resource_history: int = Field(default=1000, ge=1)
    max_application_history: int = Field(default=1000, ge=1)
    max_recent_errors: int = Field(default=100, ge=1)
    max_alerts: int = Field(default=500, ge=1)
    disk_path: str = "/"
    # None keeps probes unbounded (sequential, no deadline)
    probe_timeout_seconds: Optional[float] = Field(default=None, gt=0.0)
    thresholds: AlertThresholds = Field(default_factory=AlertThresholds)
    health_endpoints: Dict[str, HealthEndpoint] = Field(default_factory=dict)
