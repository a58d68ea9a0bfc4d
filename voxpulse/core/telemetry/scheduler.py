from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from voxpulse.core.logger import get_logger
from voxpulse.core.redaction import telemetry_redact

DEFAULT_INTERVAL_SECONDS = 60.0


@dataclass
class SchedulerStats:
    ticks_total: int = 0
    tick_failures_total: int = 0
    last_error: Optional[str] = None


class CollectionScheduler:
    """
    Fixed-interval background timer.

    A failing tick is logged and counted; the timer keeps going. The first
    tick fires one interval after `start()`.
    """

    def __init__(self, tick: Callable[[], None], *, interval_seconds: float = DEFAULT_INTERVAL_SECONDS, logger: Optional[logging.Logger] = None):
        self._tick = tick
        self.interval_seconds = max(0.01, float(interval_seconds))
        self.logger = logger or get_logger("telemetry")
        self._lock = threading.Lock()
        self._stats = SchedulerStats()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._loop, name="voxpulse-collector", daemon=True)
            self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        self._stop.set()
        with self._lock:
            t = self._thread
            self._thread = None
        if t is not None:
            t.join(timeout=timeout)

    def is_running(self) -> bool:
        with self._lock:
            return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> bool:
        try:
            self._tick()
            ok = True
            err = None
        except Exception as e:  # noqa: BLE001
            ok = False
            err = telemetry_redact(f"{e.__class__.__name__}: {e}")
            self.logger.error(f"Error in monitoring collection tick: {err}", exc_info=True)
        with self._lock:
            self._stats.ticks_total += 1
            if not ok:
                self._stats.tick_failures_total += 1
                self._stats.last_error = err
        return ok

    def stats(self) -> Dict[str, object]:
        with self._lock:
            s = self._stats
            return {"ticks_total": s.ticks_total, "tick_failures_total": s.tick_failures_total, "last_error": s.last_error, "interval_seconds": self.interval_seconds}

    def _loop(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.run_once()
