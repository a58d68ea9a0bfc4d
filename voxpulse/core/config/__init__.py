"""
Monitoring configuration.

A single optional JSON file validated by `MonitoringConfigFile`. A missing
file yields defaults; a corrupt or invalid file is a hard `ConfigError`.
"""

from __future__ import annotations

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from voxpulse.core.config.io import read_json_file
from voxpulse.core.config.models import AlertThresholds, HealthEndpoint, MonitoringConfigFile
from voxpulse.core.errors import ConfigError

__all__ = ["AlertThresholds", "HealthEndpoint", "MonitoringConfigFile", "load_monitoring_config"]


def load_monitoring_config(path: Optional[str] = None) -> MonitoringConfigFile:
    if not path:
        return MonitoringConfigFile()
    rr = read_json_file(path)
    if not rr.ok:
        if rr.error == "missing":
            return MonitoringConfigFile()
        raise ConfigError(f"Unable to read monitoring config: {rr.error}", path=path)
    try:
        return MonitoringConfigFile.model_validate(rr.data)
    except PydanticValidationError as e:
        raise ConfigError("Monitoring config failed validation.", path=path, errors=e.errors(include_url=False)) from e
