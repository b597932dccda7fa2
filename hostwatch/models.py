from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import NamedTuple, Optional, Tuple, Any


class Reading(NamedTuple):
    """Result of one collector invocation; unpacks as ``(value, ok)``."""
    value: Any
    ok: bool


class Connectivity(str, Enum):
    OK = "OK"
    FAIL = "FAIL"


class AlertKind(str, Enum):
    CPU = "CPU"
    DISK = "DISK"
    MEM = "MEM"
    NET = "NET"
    CONNECTIVITY = "CONNECTIVITY"

    @property
    def label(self) -> str:
        # word used in the alert log, which the notifier relays verbatim
        return _KIND_LABELS[self]


_KIND_LABELS = {
    AlertKind.CPU: "CPU",
    AlertKind.DISK: "DISK",
    AlertKind.MEM: "MEMORY",
    AlertKind.NET: "NETWORK",
    AlertKind.CONNECTIVITY: "CONNECTIVITY",
}


@dataclass(frozen=True)
class HostCheck:
    host: str
    reachable: bool


@dataclass(frozen=True)
class Sample:
    ts: datetime
    cpu_usage_pct: int
    disk_usage_pct: int
    mem_usage_pct: int
    net_total_kbps: int
    connectivity: Connectivity
    host_checks: Tuple[HostCheck, ...] = ()

    @property
    def unreachable_hosts(self) -> Tuple[str, ...]:
        return tuple(c.host for c in self.host_checks if not c.reachable)


@dataclass(frozen=True)
class Alert:
    ts: datetime
    kind: AlertKind
    message: str
    severity: str = "breach"     # single level
    value: Optional[int] = None
    threshold: Optional[int] = None
    host: str = ""


@dataclass(frozen=True)
class ProcSample:
    pid: int
    user: str
    name: str
    cpu_pct: float
    mem_pct: float
    rss_bytes: int
    cmdline: str = ""
