from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Tuple

from .config import ThresholdConfig
from .logger import get_logger
from .models import Alert, AlertKind, Sample

logger = get_logger(__name__)


# ══════════════════════════════════════════
# Threshold evaluation (pure)
# ══════════════════════════════════════════
def _pct_alert(ts: datetime, kind: AlertKind, value: int, threshold: int) -> Alert:
    return Alert(
        ts=ts, kind=kind, value=value, threshold=threshold,
        message=f"Usage is {value}%, exceeding threshold of {threshold}%.",
    )


def evaluate(sample: Sample, thresholds: ThresholdConfig) -> List[Alert]:
    """
    Map one sample to its breach alerts. Strict greater-than on every metric;
    the result depends only on the arguments.
    """
    ts = sample.ts
    alerts: List[Alert] = []

    if sample.cpu_usage_pct > thresholds.cpu_pct:
        alerts.append(_pct_alert(ts, AlertKind.CPU, sample.cpu_usage_pct, thresholds.cpu_pct))

    if sample.disk_usage_pct > thresholds.disk_pct:
        alerts.append(_pct_alert(ts, AlertKind.DISK, sample.disk_usage_pct, thresholds.disk_pct))

    if sample.mem_usage_pct > thresholds.mem_pct:
        alerts.append(_pct_alert(ts, AlertKind.MEM, sample.mem_usage_pct, thresholds.mem_pct))

    if sample.net_total_kbps > thresholds.net_kbps:
        alerts.append(Alert(
            ts=ts, kind=AlertKind.NET,
            value=sample.net_total_kbps, threshold=thresholds.net_kbps,
            message=(f"Usage is {sample.net_total_kbps} KB/s, "
                     f"exceeding threshold of {thresholds.net_kbps} KB/s."),
        ))

    return alerts


def connectivity_alerts(sample: Sample) -> List[Alert]:
    """One alert per unreachable host, in probe order."""
    return [
        Alert(ts=sample.ts, kind=AlertKind.CONNECTIVITY, host=host,
              message=f"Host {host} is unreachable.")
        for host in sample.unreachable_hosts
    ]


def has_cpu_alert(alerts: List[Alert]) -> bool:
    return any(a.kind is AlertKind.CPU for a in alerts)


class ThresholdEvaluator:
    """Binds the process-lifetime thresholds to ``evaluate``."""
    def __init__(self, thresholds: ThresholdConfig):
        self.thresholds = thresholds

    def evaluate(self, sample: Sample) -> List[Alert]:
        return evaluate(sample, self.thresholds)


# ══════════════════════════════════════════
# Optional cool-down
# ══════════════════════════════════════════
class AlertThrottle:
    """
    Drops repeats of the same (kind, host) inside ``cooldown_seconds``.

    Off (cooldown 0) unless configured; the default monitor alerts on every
    breaching cycle.
    """
    def __init__(self, cooldown_seconds: int = 0):
        self.cooldown_seconds = cooldown_seconds
        self._last: Dict[Tuple[AlertKind, str], datetime] = {}

    @property
    def enabled(self) -> bool:
        return self.cooldown_seconds > 0

    def filter(self, alerts: List[Alert]) -> List[Alert]:
        if not self.enabled:
            return list(alerts)

        out: List[Alert] = []
        for a in alerts:
            key = (a.kind, a.host)
            last = self._last.get(key)
            if last is not None and (a.ts - last).total_seconds() < self.cooldown_seconds:
                logger.debug(f"suppressed {a.kind.value} alert inside cool-down")
                continue
            self._last[key] = a.ts
            out.append(a)
        return out
