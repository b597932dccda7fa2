from __future__ import annotations
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, Optional

from .collectors import (
    MetricSource, CpuCollector, DiskCollector, MemoryCollector, NetworkCollector,
)
from .config import AppConfig
from .connectivity import ConnectivityChecker, ConnectivityCollector, ConnectivityReport
from .logger import get_logger
from .models import Reading, Sample

logger = get_logger(__name__)

DIMENSIONS = ("cpu", "disk", "memory", "network", "connectivity")


class Sampler:
    """
    Runs each collector once and assembles a complete Sample.

    - sequential by default
    - parallel=True fans the collectors out on a thread pool and joins them
      all before the Sample is built
    - a dimension whose probe failed still contributes its default
    """

    def __init__(self, sources: Dict[str, MetricSource], parallel: bool = False,
                 now: Callable[[], datetime] = datetime.now):
        missing = [d for d in DIMENSIONS if d not in sources]
        if missing:
            raise ValueError(f"missing collectors: {', '.join(missing)}")
        self.sources = sources
        self.parallel = parallel
        self._now = now

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "Sampler":
        t = cfg.thresholds
        sources: Dict[str, MetricSource] = {
            "cpu": CpuCollector(cfg.cpu_window_seconds),
            "disk": DiskCollector(cfg.disk_path),
            "memory": MemoryCollector(),
            "network": NetworkCollector(t.interface, cfg.net_window_seconds),
            "connectivity": ConnectivityCollector(
                t.hosts,
                ConnectivityChecker(cfg.ping_count, cfg.ping_timeout_seconds),
            ),
        }
        return cls(sources, parallel=cfg.parallel_collection)

    def _collect_all(self) -> Dict[str, Reading]:
        if not self.parallel:
            return {name: self.sources[name].collect() for name in DIMENSIONS}

        with ThreadPoolExecutor(max_workers=len(DIMENSIONS), thread_name_prefix="collector") as pool:
            futures = {name: pool.submit(self.sources[name].collect) for name in DIMENSIONS}
            # join barrier: every future resolves before the Sample exists
            return {name: fut.result() for name, fut in futures.items()}

    def sample(self, ts: Optional[datetime] = None) -> Sample:
        ts = (ts or self._now()).replace(microsecond=0)
        readings = self._collect_all()

        failed = [name for name, r in readings.items() if not r.ok]
        if failed:
            logger.debug(f"defaults substituted for: {', '.join(failed)}")

        report: ConnectivityReport = readings["connectivity"].value
        return Sample(
            ts=ts,
            cpu_usage_pct=int(readings["cpu"].value),
            disk_usage_pct=int(readings["disk"].value),
            mem_usage_pct=int(readings["memory"].value),
            net_total_kbps=int(readings["network"].value),
            connectivity=report.status,
            host_checks=report.checks,
        )
