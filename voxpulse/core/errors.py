from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict

from voxpulse.core.redaction import redact


class Severity(str, Enum):
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class VoxpulseError(Exception):
    code: str
    user_message: str
    severity: Severity = Severity.ERROR
    recoverable: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.user_message)

    def __str__(self) -> str:
        return self.user_message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "user_message": self.user_message,
            "severity": self.severity.value,
            "recoverable": bool(self.recoverable),
            "context": redact(self.context or {}),
        }


# ---- Core types ----
class ConfigError(VoxpulseError):
    def __init__(self, user_message: str = "Monitoring configuration error.", **ctx: Any):
        super().__init__("config_error", user_message, severity=Severity.CRITICAL, recoverable=False, context=ctx)


class ValidationError(VoxpulseError):
    def __init__(self, user_message: str = "Invalid request.", **ctx: Any):
        super().__init__("validation_error", user_message, severity=Severity.WARN, recoverable=False, context=ctx)


class RuleConfigError(VoxpulseError):
    def __init__(self, user_message: str = "Invalid alert rule.", **ctx: Any):
        super().__init__("rule_config_error", user_message, severity=Severity.ERROR, recoverable=False, context=ctx)


class ProbeResultError(VoxpulseError):
    def __init__(self, user_message: str = "Health probe returned an invalid result.", **ctx: Any):
        super().__init__("probe_result_error", user_message, severity=Severity.WARN, recoverable=True, context=ctx)
