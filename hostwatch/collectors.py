from __future__ import annotations
import time
from typing import Any, Callable, List

import psutil

from .logger import get_logger
from .models import Reading, ProcSample

logger = get_logger(__name__)

# Errors a probe may hit on a transient tool/OS failure.
PROBE_ERRORS = (psutil.Error, OSError, KeyError, ValueError, ZeroDivisionError, AttributeError)


def _clamp_pct(v: float) -> int:
    # truncate, never round
    return max(0, min(100, int(v)))


# ──────────────────────────────────────────────
# MetricSource – one dimension per invocation
# ──────────────────────────────────────────────
class MetricSource:
    """
    Base collector. Subclasses implement ``_read()``; ``collect()`` turns any
    probe error into ``Reading(default, False)`` so one failing dimension never
    stops the cycle.
    """
    name: str = "metric"
    default: Any = 0

    def collect(self) -> Reading:
        try:
            return Reading(self._read(), True)
        except PROBE_ERRORS as e:
            logger.warning(f"{self.name} probe failed, using default {self.default!r}: {e}")
            return Reading(self.default, False)

    def _read(self) -> Any:
        raise NotImplementedError


# ── cpu ───────────────────────────────────────
class CpuCollector(MetricSource):
    """Usage = 100 - idle% over a short sampling window."""
    name = "cpu"
    default = 0    # idle 100

    def __init__(self, window_seconds: float = 1.0):
        self.window_seconds = window_seconds

    def _read(self) -> int:
        idle = float(psutil.cpu_times_percent(interval=self.window_seconds).idle)
        return _clamp_pct(100 - idle)


# ── disk ──────────────────────────────────────
class DiskCollector(MetricSource):
    name = "disk"
    default = 0

    def __init__(self, path: str = "/"):
        self.path = path

    def _read(self) -> int:
        return _clamp_pct(psutil.disk_usage(self.path).percent)


# ── memory ────────────────────────────────────
class MemoryCollector(MetricSource):
    name = "memory"
    default = 0

    def _read(self) -> int:
        mem = psutil.virtual_memory()
        return _clamp_pct(mem.used * 100 / mem.total)


# ── network ───────────────────────────────────
class NetworkCollector(MetricSource):
    """
    Receive + transmit throughput (KB/s) on one interface, measured by reading
    the per-NIC counters on both ends of a short window.
    """
    name = "network"
    default = 0

    def __init__(self, interface: str, window_seconds: float = 1.0,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.interface = interface
        self.window_seconds = window_seconds
        self._sleep = sleep
        self._clock = clock

    def _counters(self):
        return psutil.net_io_counters(pernic=True)[self.interface]

    def _read(self) -> int:
        before = self._counters()
        t0 = self._clock()
        self._sleep(self.window_seconds)
        after = self._counters()
        dt = max(0.001, self._clock() - t0)

        rx = max(0, after.bytes_recv - before.bytes_recv)
        tx = max(0, after.bytes_sent - before.bytes_sent)
        return max(0, int((rx + tx) / 1024 / dt))


# ──────────────────────────────────────────────
# TopProcesses – CPU-spike diagnostic snapshot
# ──────────────────────────────────────────────
class TopProcesses:
    """
    Ranks processes by CPU share. Per-process cpu_percent() needs a previous
    call to measure against, so every snapshot primes all processes, waits a
    short window, then reads them again.
    """
    def __init__(self, count: int = 5, window_seconds: float = 0.5,
                 sleep: Callable[[float], None] = time.sleep):
        self.count = count
        self.window_seconds = window_seconds
        self._sleep = sleep

    def snapshot(self) -> List[ProcSample]:
        try:
            procs = list(psutil.process_iter(["pid", "name", "username", "cmdline"]))
        except PROBE_ERRORS as e:
            logger.warning(f"process listing failed: {e}")
            return []

        # warmup
        for p in procs:
            try:
                p.cpu_percent(None)
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        self._sleep(self.window_seconds)

        rows: List[ProcSample] = []
        for p in procs:
            try:
                cpu = p.cpu_percent(None)
                mem_pct = p.memory_percent()
                rss = p.memory_info().rss
                info = p.info
                cmd = info.get("cmdline") or []
                rows.append(ProcSample(
                    pid=int(info["pid"]),
                    user=info.get("username") or "",
                    name=info.get("name") or "",
                    cpu_pct=float(cpu),
                    mem_pct=float(mem_pct),
                    rss_bytes=int(rss),
                    cmdline=" ".join(cmd) if cmd else (info.get("name") or ""),
                ))
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        rows.sort(key=lambda r: r.cpu_pct, reverse=True)
        return rows[:self.count]
