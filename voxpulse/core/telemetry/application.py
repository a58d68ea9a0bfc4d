from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional

from voxpulse.core.redaction import telemetry_redact
from voxpulse.core.telemetry.models import (
    ApiStats,
    ApplicationSnapshot,
    CallStats,
    ErrorEntry,
    ErrorStats,
    InferenceStats,
    SessionStats,
)


@dataclass
class _LiveCounters:
    sessions_active: int = 0
    sessions_total: int = 0
    sessions_expired: int = 0

    calls_total: int = 0
    calls_successful: int = 0
    calls_failed: int = 0
    calls_avg_duration_ms: float = 0.0

    api_total: int = 0
    api_successful: int = 0
    api_failed: int = 0
    api_avg_response_ms: float = 0.0

    inference_total: int = 0
    inference_successful: int = 0
    inference_failed: int = 0
    inference_avg_response_ms: float = 0.0
    inference_tokens: int = 0

    errors_total: int = 0
    errors_by_kind: Dict[str, int] = field(default_factory=dict)


def _streaming_mean(avg: float, n: int, value: float) -> float:
    # n already includes the new observation
    return (avg * (n - 1) + float(value)) / n


class ApplicationAggregator:
    """
    One live counter set plus an immutable snapshot history.

    Counters are cumulative for the lifetime of the aggregator; snapshots
    copy them without resetting.
    """

    def __init__(self, *, max_history: int = 1000, max_recent_errors: int = 100, clock: Callable[[], float] = time.time):
        self.max_history = max(1, int(max_history))
        self.max_recent_errors = max(1, int(max_recent_errors))
        self._clock = clock
        self._lock = threading.Lock()
        self._live = _LiveCounters()
        self._recent_errors: Deque[ErrorEntry] = deque(maxlen=self.max_recent_errors)
        self._history_lock = threading.Lock()
        self._history: Deque[ApplicationSnapshot] = deque(maxlen=self.max_history)

    # -------- recording --------
    def record_session_start(self) -> None:
        with self._lock:
            self._live.sessions_active += 1
            self._live.sessions_total += 1

    def record_session_end(self, success: bool) -> None:
        with self._lock:
            self._live.sessions_active -= 1
            if not success:
                self._live.sessions_expired += 1

    def record_call(self, success: bool, duration_ms: float) -> None:
        with self._lock:
            c = self._live
            c.calls_total += 1
            if success:
                c.calls_successful += 1
            else:
                c.calls_failed += 1
            # Averaged over the successful count on every call, failed ones included.
            if c.calls_successful >= 1:
                c.calls_avg_duration_ms = _streaming_mean(c.calls_avg_duration_ms, c.calls_successful, duration_ms)

    def record_api_request(self, success: bool, response_time_ms: float) -> None:
        with self._lock:
            c = self._live
            c.api_total += 1
            if success:
                c.api_successful += 1
            else:
                c.api_failed += 1
            c.api_avg_response_ms = _streaming_mean(c.api_avg_response_ms, c.api_total, response_time_ms)

    def record_inference_request(self, success: bool, response_time_ms: float, tokens: int = 0) -> None:
        with self._lock:
            c = self._live
            c.inference_total += 1
            if success:
                c.inference_successful += 1
                c.inference_tokens += int(tokens)
            else:
                c.inference_failed += 1
            c.inference_avg_response_ms = _streaming_mean(c.inference_avg_response_ms, c.inference_total, response_time_ms)

    def record_error(self, kind: str, message: str, trace: Optional[str] = None) -> None:
        entry = ErrorEntry(
            timestamp=self._clock(),
            kind=str(kind),
            message=telemetry_redact(str(message)),
            trace=telemetry_redact(trace) if trace is not None else None,
        )
        with self._lock:
            c = self._live
            c.errors_total += 1
            c.errors_by_kind[entry.kind] = int(c.errors_by_kind.get(entry.kind, 0)) + 1
            self._recent_errors.append(entry)

    # -------- snapshots --------
    def current_snapshot(self) -> ApplicationSnapshot:
        with self._lock:
            return self._freeze_locked()

    def snapshot(self) -> ApplicationSnapshot:
        # freeze and append together so history stays in timestamp order
        with self._lock:
            snap = self._freeze_locked()
            with self._history_lock:
                self._history.append(snap)
        return snap

    def history(self) -> List[ApplicationSnapshot]:
        with self._history_lock:
            return list(self._history)

    def _freeze_locked(self) -> ApplicationSnapshot:
        c = self._live
        return ApplicationSnapshot(
            timestamp=self._clock(),
            sessions=SessionStats(active=c.sessions_active, total=c.sessions_total, expired_count=c.sessions_expired),
            calls=CallStats(total=c.calls_total, successful=c.calls_successful, failed=c.calls_failed, average_duration_ms=c.calls_avg_duration_ms),
            api=ApiStats(
                total_requests=c.api_total,
                successful_requests=c.api_successful,
                failed_requests=c.api_failed,
                average_response_time_ms=c.api_avg_response_ms,
            ),
            inference=InferenceStats(
                total_requests=c.inference_total,
                successful_requests=c.inference_successful,
                failed_requests=c.inference_failed,
                average_response_time_ms=c.inference_avg_response_ms,
                tokens_consumed=c.inference_tokens,
            ),
            errors=ErrorStats(total=c.errors_total, count_by_kind=dict(c.errors_by_kind), recent=list(self._recent_errors)),
        )
