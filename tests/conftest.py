"""
Pytest configuration and fixtures.
"""
from datetime import datetime

import pytest

from hostwatch.collectors import MetricSource
from hostwatch.config import AppConfig, ThresholdConfig
from hostwatch.connectivity import ConnectivityReport
from hostwatch.models import Connectivity, HostCheck, Sample
from hostwatch.sampler import Sampler
from hostwatch.store import Store


class FakeSource(MetricSource):
    """Collector returning queued values; an exception instance simulates a probe failure."""

    def __init__(self, name, values, default=0):
        self.name = name
        self.default = default
        self._values = list(values)
        self.calls = 0

    def _read(self):
        self.calls += 1
        v = self._values.pop(0) if len(self._values) > 1 else self._values[0]
        if isinstance(v, Exception):
            raise v
        return v


class FakeTopProcesses:
    def __init__(self, procs=None):
        self.procs = procs or []
        self.calls = 0

    def snapshot(self):
        self.calls += 1
        return list(self.procs)


def report(*checks):
    checks = tuple(HostCheck(h, ok) for h, ok in checks)
    status = Connectivity.FAIL if any(not c.reachable for c in checks) else Connectivity.OK
    return ConnectivityReport(status=status, checks=checks)


def make_sources(cpu=10, disk=20, mem=30, net=40, conn=None):
    return {
        "cpu": FakeSource("cpu", [cpu]),
        "disk": FakeSource("disk", [disk]),
        "memory": FakeSource("memory", [mem]),
        "network": FakeSource("network", [net]),
        "connectivity": FakeSource(
            "connectivity", [conn or report()],
            default=ConnectivityReport(status=Connectivity.OK),
        ),
    }


@pytest.fixture
def fixed_ts():
    return datetime(2024, 3, 5, 14, 7, 9)


@pytest.fixture
def thresholds():
    return ThresholdConfig(cpu_pct=80, disk_pct=60, mem_pct=80, net_kbps=102400,
                           hosts=("A", "B"), interface="eth0")


@pytest.fixture
def app_config(tmp_path, thresholds):
    return AppConfig(
        interval_seconds=60,
        thresholds=thresholds,
        metrics_log=str(tmp_path / "system_load.log"),
        alert_log=str(tmp_path / "alerts.log"),
        cpu_spike_log=str(tmp_path / "cpu_spike_details.log"),
    )


@pytest.fixture
def store(app_config):
    return Store.from_config(app_config)


@pytest.fixture
def sample_factory(fixed_ts):
    def _make(**kw):
        values = dict(
            ts=fixed_ts, cpu_usage_pct=10, disk_usage_pct=20, mem_usage_pct=30,
            net_total_kbps=40, connectivity=Connectivity.OK, host_checks=(),
        )
        values.update(kw)
        return Sample(**values)
    return _make


@pytest.fixture
def fake_sampler(fixed_ts):
    def _make(**kw):
        return Sampler(make_sources(**kw), now=lambda: fixed_ts)
    return _make


