from __future__ import annotations
import os
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .config import AppConfig
from .logger import get_logger
from .models import Alert, ProcSample, Sample

logger = get_logger(__name__)

TS_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_PENDING = 1000


# ──────────────────────────────────────────────
# Record formats (the alert line is read by the notifier)
# ──────────────────────────────────────────────
def format_sample(s: Sample) -> str:
    return (
        f"{s.ts.strftime(TS_FORMAT)} | CPU: {s.cpu_usage_pct}% | Disk: {s.disk_usage_pct}% "
        f"| Mem: {s.mem_usage_pct}% | Net: {s.net_total_kbps} KB/s "
        f"| Connectivity: {s.connectivity.value}\n"
    )


def format_alert(a: Alert) -> str:
    return f"[{a.ts.strftime(TS_FORMAT)}] {a.kind.label} ALERT: {a.message}\n"


def format_cpu_spike(s: Sample, procs: Sequence[ProcSample]) -> str:
    lines = [
        f"--- Top Processes during CPU spike at {s.ts.strftime(TS_FORMAT)} (Usage: {s.cpu_usage_pct}%) ---",
        f"{'USER':<16} {'PID':>7} {'%CPU':>6} {'%MEM':>5} {'RSS(KB)':>10} COMMAND",
    ]
    for p in procs:
        cmd = p.cmdline or p.name
        lines.append(
            f"{p.user[:16]:<16} {p.pid:>7} {p.cpu_pct:>6.1f} {p.mem_pct:>5.1f} "
            f"{p.rss_bytes // 1024:>10} {cmd[:200]}"
        )
    if not procs:
        lines.append("(process list unavailable)")
    lines.append("--- End of list ---")
    lines.append("")
    return "\n".join(lines) + "\n"


def format_banner(event: str, ts: datetime) -> str:
    # same shape as date(1): space-padded day, zone name when known
    parts = [ts.strftime("%a %b"), f"{ts.day:>2}", ts.strftime("%H:%M:%S"), ts.strftime("%Z"), ts.strftime("%Y")]
    return f"--- Monitor {event} at {' '.join(p for p in parts if p)} ---\n"


# ──────────────────────────────────────────────
# AppendOnlySink
# ──────────────────────────────────────────────
class AppendOnlySink:
    """
    Appends whole records to one file. The file is opened per write with
    O_APPEND, so each record lands in one piece at the current end of file.
    Records that fail to write are kept and retried, in order, ahead of the
    next write.
    """
    def __init__(self, path: str, max_pending: int = MAX_PENDING):
        self.path = str(path)
        self.max_pending = max_pending
        self._pending: List[str] = []

    @property
    def pending(self) -> int:
        return len(self._pending)

    def _queue(self, records: List[str]) -> None:
        self._pending = records
        overflow = len(self._pending) - self.max_pending
        if overflow > 0:
            logger.warning(f"{self.path}: dropping {overflow} oldest unwritten record(s)")
            self._pending = self._pending[overflow:]

    def write(self, *records: str) -> bool:
        queue = self._pending + list(records)
        if not queue:
            return True
        payloads = [_encode(rec) for rec in queue]
        self._pending = []

        try:
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o644)
        except OSError as e:
            logger.error(f"cannot open {self.path} for append: {e}")
            self._queue(queue)
            return False

        try:
            for i, data in enumerate(payloads):
                try:
                    _write_all(fd, data)
                except OSError as e:
                    logger.error(f"write to {self.path} failed, {len(queue) - i} record(s) deferred: {e}")
                    self._queue(queue[i:])
                    return False
        finally:
            os.close(fd)
        return True


def _encode(record: str) -> bytes:
    # psutil hands back undecodable argv bytes as lone surrogates
    try:
        return record.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError:
        return record.encode("utf-8", errors="backslashreplace")


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        n = os.write(fd, view)
        view = view[n:]


# ──────────────────────────────────────────────
# Store – the three monitor logs
# ──────────────────────────────────────────────
class Store:
    def __init__(self, metrics_path: str, alert_path: str, cpu_spike_path: str):
        self.metrics = AppendOnlySink(metrics_path)
        self.alerts = AppendOnlySink(alert_path)
        self.cpu_spikes = AppendOnlySink(cpu_spike_path)

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "Store":
        return cls(cfg.metrics_log, cfg.alert_log, cfg.cpu_spike_log)

    def write_banner(self, ts: Optional[datetime] = None) -> None:
        line = format_banner("started", ts or datetime.now().astimezone())
        self.metrics.write(line)
        self.alerts.write(line)

    def write_stop_banner(self, ts: Optional[datetime] = None) -> None:
        self.metrics.write(format_banner("stopped", ts or datetime.now().astimezone()))

    @property
    def pending(self) -> int:
        return self.metrics.pending + self.alerts.pending + self.cpu_spikes.pending

    def flush(self) -> bool:
        """Retry records left over from earlier failed writes."""
        results = [sink.write() for sink in (self.metrics, self.alerts, self.cpu_spikes)]
        return all(results)

    def add_sample(self, s: Sample) -> bool:
        return self.metrics.write(format_sample(s))

    def add_alerts_batch(self, alerts: Sequence[Alert]) -> bool:
        """One line per alert, retried as a batch if the file is unwritable."""
        return self.alerts.write(*(format_alert(a) for a in alerts))

    def add_cpu_spike(self, s: Sample, procs: Sequence[ProcSample]) -> bool:
        return self.cpu_spikes.write(format_cpu_spike(s, procs))
