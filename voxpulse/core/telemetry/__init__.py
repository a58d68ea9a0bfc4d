"""
Telemetry & alerting (in-memory, local-only).

This subsystem:
- samples host resources (CPU/RAM/disk/network) into a bounded history
- aggregates application counters (sessions, calls, API, inference, errors)
- evaluates alert rules on each collection tick and keeps an alert ledger
- runs named async health probes and composes a dashboard view

Nothing is persisted or sent anywhere; state lives for the process.
"""

from voxpulse.core.telemetry.manager import MonitoringSystem

__all__ = ["MonitoringSystem"]
