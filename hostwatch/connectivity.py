from __future__ import annotations
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .collectors import MetricSource
from .logger import get_logger
from .models import Connectivity, HostCheck

logger = get_logger(__name__)


@dataclass(frozen=True)
class ConnectivityReport:
    status: Connectivity
    checks: Tuple[HostCheck, ...] = ()


class ConnectivityChecker:
    """
    Single bounded-timeout ping per host. Hosts are probed in configured
    order and each result stands on its own.
    """
    def __init__(self, count: int = 1, timeout_seconds: int = 2, ping_cmd: str = "ping"):
        self.count = count
        self.timeout_seconds = timeout_seconds
        self.ping_cmd = ping_cmd

    def command(self, host: str) -> List[str]:
        return [self.ping_cmd, "-c", str(self.count), "-W", str(self.timeout_seconds), host]

    def probe(self, host: str) -> bool:
        # outer timeout only guards against a ping that ignores -W
        limit = self.count * self.timeout_seconds + 2
        try:
            proc = subprocess.run(
                self.command(host),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=limit,
                check=False,
                # own process group: a terminal Ctrl-C must not fail the probe mid-shutdown
                start_new_session=True,
            )
        except FileNotFoundError:
            logger.error(f"'{self.ping_cmd}' not found; treating {host} as unreachable")
            return False
        except subprocess.TimeoutExpired:
            logger.warning(f"ping {host} did not finish within {limit}s")
            return False
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"ping {host} failed: {e}")
            return False
        return proc.returncode == 0

    def check(self, hosts: Sequence[str]) -> ConnectivityReport:
        checks = tuple(HostCheck(host=h, reachable=self.probe(h)) for h in hosts)
        for c in checks:
            if not c.reachable:
                logger.info(f"host {c.host} unreachable")
        status = Connectivity.FAIL if any(not c.reachable for c in checks) else Connectivity.OK
        return ConnectivityReport(status=status, checks=checks)


class ConnectivityCollector(MetricSource):
    name = "connectivity"
    default = ConnectivityReport(status=Connectivity.OK)

    def __init__(self, hosts: Sequence[str], checker: Optional[ConnectivityChecker] = None):
        self.hosts = tuple(hosts)
        self.checker = checker or ConnectivityChecker()

    def _read(self) -> ConnectivityReport:
        # an unreachable host is a measured result, not a probe failure
        return self.checker.check(self.hosts)
