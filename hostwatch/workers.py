from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .collectors import TopProcesses
from .config import AppConfig, ThresholdConfig
from .detectors import AlertThrottle, ThresholdEvaluator, connectivity_alerts, has_cpu_alert
from .logger import get_logger
from .models import Alert, ProcSample, Sample
from .sampler import Sampler
from .store import Store

logger = get_logger(__name__)


@dataclass(frozen=True)
class Evaluation:
    alerts: List[Alert] = field(default_factory=list)
    cpu_spike_procs: Optional[List[ProcSample]] = None   # set only when a CPU alert fired


class MonitorWorker:
    """
    One cycle's work, split into the phases the scheduler steps through:
    collect → evaluate → persist. Nothing is carried from one cycle to the
    next except the optional cool-down bookkeeping.
    """

    def __init__(self, sampler: Sampler, store: Store, thresholds: ThresholdConfig,
                 top_processes: Optional[TopProcesses] = None,
                 throttle: Optional[AlertThrottle] = None):
        self.sampler = sampler
        self.store = store
        self.evaluator = ThresholdEvaluator(thresholds)
        self.top_processes = top_processes or TopProcesses()
        self.throttle = throttle or AlertThrottle(0)

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "MonitorWorker":
        return cls(
            sampler=Sampler.from_config(cfg),
            store=Store.from_config(cfg),
            thresholds=cfg.thresholds,
            top_processes=TopProcesses(cfg.top_process_count),
            throttle=AlertThrottle(cfg.alert_cooldown_seconds),
        )

    def collect(self) -> Sample:
        return self.sampler.sample()

    def evaluate(self, sample: Sample) -> Evaluation:
        # probes ran before the thresholds are checked, so host alerts come first
        alerts = connectivity_alerts(sample) + self.evaluator.evaluate(sample)
        alerts = self.throttle.filter(alerts)

        procs = None
        if has_cpu_alert(alerts):
            procs = self.top_processes.snapshot()
        return Evaluation(alerts=alerts, cpu_spike_procs=procs)

    def persist(self, sample: Sample, ev: Evaluation) -> bool:
        self.store.flush()
        ok = self.store.add_sample(sample)
        ok = self.store.add_alerts_batch(ev.alerts) and ok
        if ev.cpu_spike_procs is not None:
            ok = self.store.add_cpu_spike(sample, ev.cpu_spike_procs) and ok
        if not ok:
            logger.warning(f"cycle {sample.ts} persisted partially; {self.store.pending} record(s) pending")
        return ok

    def tick(self) -> Evaluation:
        """Run all three phases back to back."""
        sample = self.collect()
        ev = self.evaluate(sample)
        self.persist(sample, ev)
        return ev
