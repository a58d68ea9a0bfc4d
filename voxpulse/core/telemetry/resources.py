from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

import psutil

from voxpulse.core.telemetry.models import CpuStats, DiskStats, MemoryStats, NetworkStats, ResourceSample

DiskProbe = Callable[[], DiskStats]
NetworkProbe = Callable[[], NetworkStats]


def disk_probe(path: str = "/") -> DiskProbe:
    def probe() -> DiskStats:
        usage = psutil.disk_usage(path)
        return DiskStats(used_bytes=int(usage.used), free_bytes=int(usage.free), total_bytes=int(usage.total), usage_percent=float(usage.percent))

    return probe


def network_probe() -> NetworkStats:
    io = psutil.net_io_counters()
    try:
        active = len(psutil.net_connections(kind="inet"))
    except psutil.AccessDenied:
        # macOS needs root to list sockets
        active = 0
    return NetworkStats(bytes_in=int(io.bytes_recv), bytes_out=int(io.bytes_sent), active_connections=active)


def _cpu_ticks() -> Tuple[float, float]:
    t = psutil.cpu_times(percpu=False)
    # guest time is already counted in user/nice on Linux
    total = float(sum(t)) - float(getattr(t, "guest", 0.0)) - float(getattr(t, "guest_nice", 0.0))
    return float(t.idle), total


class ResourceSampler:
    """
    Host resource sampler with a bounded FIFO history.

    CPU usage is derived from cumulative idle/total ticks across all cores,
    relative to the previous read (the first read is relative to boot).
    Probe errors are not caught here; the collection tick owns them. A
    failed sample leaves the previous CPU read in place.
    """

    def __init__(self, *, max_history: int = 1000, disk: Optional[DiskProbe] = None, network: Optional[NetworkProbe] = None, clock: Callable[[], float] = time.time):
        self.max_history = max(1, int(max_history))
        self._disk = disk or disk_probe("/")
        self._network = network or network_probe
        self._clock = clock
        self._lock = threading.Lock()
        self._sample_lock = threading.Lock()
        self._history: Deque[ResourceSample] = deque(maxlen=self.max_history)
        self._prev_ticks: Optional[Tuple[float, float]] = None

    def sample(self) -> ResourceSample:
        with self._sample_lock:
            ticks = _cpu_ticks()
            out = ResourceSample(
                timestamp=self._clock(),
                cpu=CpuStats(usage_percent=self._cpu_usage_percent(ticks), load_averages=[float(x) for x in psutil.getloadavg()]),
                memory=_memory_stats(),
                disk=self._disk(),
                network=self._network(),
            )
            with self._lock:
                self._prev_ticks = ticks
                self._history.append(out)
        return out

    def latest(self) -> Optional[ResourceSample]:
        with self._lock:
            return self._history[-1] if self._history else None

    def history(self) -> List[ResourceSample]:
        with self._lock:
            return list(self._history)

    def _cpu_usage_percent(self, ticks: Tuple[float, float]) -> float:
        idle, total = ticks
        with self._lock:
            prev = self._prev_ticks
        d_idle, d_total = idle, total
        if prev is not None and total - prev[1] > 0:
            d_idle, d_total = idle - prev[0], total - prev[1]
        if d_total <= 0:
            return 0.0
        return float(100 - round(100 * d_idle / d_total))


def _memory_stats() -> MemoryStats:
    vm = psutil.virtual_memory()
    total = int(vm.total)
    free = int(vm.available)
    used = total - free
    usage = (used / total * 100.0) if total else 0.0
    return MemoryStats(used_bytes=used, free_bytes=free, total_bytes=total, usage_percent=float(usage))
