from __future__ import annotations

from collections import namedtuple
from typing import Any, Dict, List, Optional

from voxpulse.core.telemetry.models import DiskStats, NetworkStats

CpuTimes = namedtuple("CpuTimes", ["user", "system", "idle"])
VirtualMemory = namedtuple("VirtualMemory", ["total", "available"])


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self._t = float(start)

    def time(self) -> float:
        return self._t

    def advance(self, seconds: float) -> None:
        self._t += float(seconds)


class FakeHost:
    """Stands in for the psutil calls the resource sampler makes."""

    def __init__(self, *, idle: float = 750.0, busy: float = 250.0, mem_total: int = 1000, mem_available: int = 400, load: tuple = (0.5, 0.25, 0.125)):
        self.idle = float(idle)
        self.busy = float(busy)
        self.mem_total = int(mem_total)
        self.mem_available = int(mem_available)
        self.load = load
        self.cpu_reads = 0

    def tick(self, *, idle: float, busy: float) -> None:
        self.idle += float(idle)
        self.busy += float(busy)

    def cpu_times(self, percpu: bool = False) -> CpuTimes:
        self.cpu_reads += 1
        return CpuTimes(user=self.busy / 2, system=self.busy / 2, idle=self.idle)

    def virtual_memory(self) -> VirtualMemory:
        return VirtualMemory(total=self.mem_total, available=self.mem_available)

    def getloadavg(self) -> tuple:
        return self.load

    def install(self, monkeypatch) -> "FakeHost":  # noqa: ANN001
        from voxpulse.core.telemetry import resources

        monkeypatch.setattr(resources.psutil, "cpu_times", self.cpu_times)
        monkeypatch.setattr(resources.psutil, "virtual_memory", self.virtual_memory)
        monkeypatch.setattr(resources.psutil, "getloadavg", self.getloadavg)
        return self


def fixed_disk(used: int = 30, total: int = 100) -> Any:
    return lambda: DiskStats(used_bytes=used, free_bytes=total - used, total_bytes=total, usage_percent=used / total * 100.0)


def fixed_network(bytes_in: int = 1_000_000, bytes_out: int = 500_000, connections: int = 25) -> Any:
    return lambda: NetworkStats(bytes_in=bytes_in, bytes_out=bytes_out, active_connections=connections)


class RecordingProbe:
    """Async probe that records its calls into a shared list."""

    def __init__(self, name: str, calls: List[str], *, result: Optional[Dict[str, Any]] = None, error: Optional[BaseException] = None):
        self.name = name
        self.calls = calls
        self.result = result if result is not None else {"healthy": True}
        self.error = error

    async def __call__(self) -> Dict[str, Any]:
        self.calls.append(self.name)
        if self.error is not None:
            raise self.error
        return self.result
