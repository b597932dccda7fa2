"""
Tests for the command-line entry point.
"""
import json
from unittest.mock import patch

from conftest import FakeTopProcesses
from hostwatch.app import EXIT_CONFIG, EXIT_OK, build_parser, main
from hostwatch.config import ConfigError
from hostwatch.store import Store
from hostwatch.workers import MonitorWorker


def _write_config(tmp_path, **extra):
    data = {
        "metrics_log": str(tmp_path / "system_load.log"),
        "alert_log": str(tmp_path / "alerts.log"),
        "cpu_spike_log": str(tmp_path / "cpu_spike_details.log"),
    }
    data.update(extra)
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))
    return path


class TestParser:
    def test_repeatable_hosts(self):
        args = build_parser().parse_args(["--host", "a", "--host", "b", "--once"])
        assert args.hosts == ["a", "b"]
        assert args.once is True
        assert args.parallel_collection is None


class TestMain:
    def test_config_error_exits_before_loop(self, tmp_path):
        path = _write_config(tmp_path, thresholds={"disk_pct": 250})
        with patch("hostwatch.app.Scheduler") as sched:
            assert main(["--config", str(path)]) == EXIT_CONFIG
        sched.assert_not_called()
        assert not (tmp_path / "system_load.log").exists()

    @patch("hostwatch.app.check_interface")
    @patch("hostwatch.app.install_signal_handlers")
    def test_once_writes_banner_and_one_sample(self, _signals, _iface, tmp_path, fake_sampler):
        path = _write_config(tmp_path)

        def fake_worker(cfg):
            return MonitorWorker(fake_sampler(mem=95), Store.from_config(cfg), cfg.thresholds,
                                 top_processes=FakeTopProcesses())

        with patch.object(MonitorWorker, "from_config", side_effect=fake_worker):
            assert main(["--config", str(path), "--once"]) == EXIT_OK

        metrics = (tmp_path / "system_load.log").read_text().splitlines()
        assert metrics[0].startswith("--- Monitor started at ")
        assert metrics[1] == "2024-03-05 14:07:09 | CPU: 10% | Disk: 20% | Mem: 95% | Net: 40 KB/s | Connectivity: OK"
        assert metrics[2].startswith("--- Monitor stopped at ")

        alerts = (tmp_path / "alerts.log").read_text().splitlines()
        assert alerts[0].startswith("--- Monitor started at ")
        assert alerts[1] == "[2024-03-05 14:07:09] MEMORY ALERT: Usage is 95%, exceeding threshold of 80%."

    @patch("hostwatch.app.check_interface")
    def test_missing_interface_is_fatal(self, mock_check, tmp_path):
        mock_check.side_effect = ConfigError("network interface 'eth0' not found")
        path = _write_config(tmp_path)
        assert main(["--config", str(path)]) == EXIT_CONFIG
