"""
Tests for configuration loading and validation.
"""
import json
from unittest.mock import patch

import pytest

from hostwatch.config import (
    AppConfig, ConfigError, ThresholdConfig, check_interface, load_config,
    save_config, validate_config, with_overrides,
)


class TestDefaults:
    def test_reference_thresholds(self):
        cfg = AppConfig()
        t = cfg.thresholds
        assert (t.cpu_pct, t.disk_pct, t.mem_pct, t.net_kbps) == (80, 60, 80, 102400)
        assert t.hosts == ("8.8.8.8", "1.1.1.1", "1.0.0.1", "9.9.9.9")
        assert t.interface == "eth0"
        assert cfg.interval_seconds == 60
        assert (cfg.ping_count, cfg.ping_timeout_seconds) == (1, 2)
        assert cfg.alert_cooldown_seconds == 0

    def test_config_is_immutable(self):
        with pytest.raises(Exception):
            AppConfig().interval_seconds = 5


class TestLoadConfig:
    def test_first_run_writes_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        cfg = load_config(path)
        assert cfg == AppConfig()
        assert json.loads(path.read_text())["thresholds"]["cpu_pct"] == 80

    def test_round_trip_through_file(self, tmp_path):
        path = tmp_path / "config.json"
        cfg = AppConfig(interval_seconds=30, thresholds=ThresholdConfig(hosts=("10.0.0.1",)))
        save_config(cfg, path)
        assert load_config(path) == cfg

    def test_partial_file_and_unknown_keys(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "interval_seconds": 5,
            "colour": "blue",
            "thresholds": {"cpu_pct": 90, "hosts": ["a", "b", "a"], "extra": 1},
        }))
        cfg = load_config(path)
        assert cfg.interval_seconds == 5
        assert cfg.thresholds.cpu_pct == 90
        assert cfg.thresholds.hosts == ("a", "b")
        assert cfg.thresholds.mem_pct == 80

    def test_malformed_json_is_fatal(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_threshold_is_fatal(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"thresholds": {"cpu_pct": "eighty"}}))
        with pytest.raises(ConfigError, match="cpu_pct"):
            load_config(path)


class TestValidateConfig:
    @pytest.mark.parametrize("thresholds", [
        ThresholdConfig(cpu_pct=101),
        ThresholdConfig(disk_pct=-1),
        ThresholdConfig(mem_pct=True),
        ThresholdConfig(net_kbps=-5),
        ThresholdConfig(interface=""),
        ThresholdConfig(interface=" eth0"),
        ThresholdConfig(hosts=("-f",)),
        ThresholdConfig(hosts=("",)),
    ])
    def test_bad_thresholds(self, thresholds):
        with pytest.raises(ConfigError):
            validate_config(AppConfig(thresholds=thresholds))

    @pytest.mark.parametrize("field,value", [
        ("interval_seconds", 0),
        ("ping_count", 0),
        ("top_process_count", 0),
        ("alert_cooldown_seconds", -1),
        ("alert_log", ""),
    ])
    def test_bad_app_settings(self, field, value):
        with pytest.raises(ConfigError):
            validate_config(AppConfig(**{field: value}))

    def test_empty_host_list_is_allowed(self):
        validate_config(AppConfig(thresholds=ThresholdConfig(hosts=())))


class TestOverrides:
    def test_cli_values_replace_file_values(self):
        cfg = with_overrides(AppConfig(), interface="wlan0", hosts=["x", "x", "y"],
                             interval_seconds=10, log_level=None)
        assert cfg.thresholds.interface == "wlan0"
        assert cfg.thresholds.hosts == ("x", "y")
        assert cfg.interval_seconds == 10
        assert cfg.log_level == "INFO"

    def test_overrides_are_validated(self):
        with pytest.raises(ConfigError):
            with_overrides(AppConfig(), interval_seconds=-1)


class TestCheckInterface:
    @patch("hostwatch.config.psutil.net_if_stats")
    def test_present(self, mock_stats):
        mock_stats.return_value = {"lo": object(), "eth0": object()}
        check_interface(AppConfig())

    @patch("hostwatch.config.psutil.net_if_stats")
    def test_absent_names_alternatives(self, mock_stats):
        mock_stats.return_value = {"lo": object(), "ens3": object()}
        with pytest.raises(ConfigError, match="ens3"):
            check_interface(AppConfig())
