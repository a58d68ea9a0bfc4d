from __future__ import annotations

import re
from typing import Any, Dict


REDACT_KEYS = {
    "password",
    "secret",
    "token",
    "api_key",
    "apikey",
    "authorization",
    "x-api-key",
}

REDACTED = "***REDACTED***"

_SENSITIVE_INLINE = [
    # e.g. "api_key: abc", "token=xyz"
    re.compile(r"(?i)\b(api[_-]?key|token|secret|password|authorization)\b\s*[:=]\s*([^\s,;]+)"),
    # e.g. "Bearer <token>"
    re.compile(r"(?i)\bBearer\s+([A-Za-z0-9\-\._~\+/]+=*)"),
]


def redact(obj: Any) -> Any:
    """Key-based redaction only; values under sensitive keys are replaced."""
    if isinstance(obj, dict):
        out: Dict[str, Any] = {}
        for k, v in obj.items():
            if str(k).lower() in REDACT_KEYS:
                out[k] = REDACTED
            else:
                out[k] = redact(v)
        return out
    if isinstance(obj, list):
        return [redact(x) for x in obj]
    return obj


def redact_text(s: str) -> str:
    out = s
    # bearer first so "Authorization: Bearer <token>" is fully scrubbed
    out = _SENSITIVE_INLINE[1].sub(f"Bearer {REDACTED}", out)
    out = _SENSITIVE_INLINE[0].sub(lambda m: f"{m.group(1)}={REDACTED}", out)
    return out


def telemetry_redact(obj: Any) -> Any:
    """
    Telemetry-safe redaction:
    - key-based redaction
    - inline string scrubbing for common secret patterns (provider API keys
      and bearer tokens tend to leak into exception messages)
    """
    if obj is None:
        return None
    if isinstance(obj, str):
        return redact_text(obj)
    if isinstance(obj, dict):
        base: Dict[str, Any] = redact(obj)
        return {k: telemetry_redact(v) for k, v in base.items()}
    if isinstance(obj, (list, tuple)):
        return [telemetry_redact(x) for x in obj]
    return obj
