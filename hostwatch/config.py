from __future__ import annotations
from dataclasses import dataclass, field, asdict, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple
import json

import psutil

APP_DIR = Path.home() / ".hostwatch"
CFG_PATH = APP_DIR / "config.json"

DEFAULT_HOSTS = ("8.8.8.8", "1.1.1.1", "1.0.0.1", "9.9.9.9")


class ConfigError(ValueError):
    """Configuration is missing or invalid; the monitor must not start."""


@dataclass(frozen=True)
class ThresholdConfig:
    cpu_pct: int = 80
    disk_pct: int = 60
    mem_pct: int = 80
    net_kbps: int = 102400        # 100 MB/s
    hosts: Tuple[str, ...] = DEFAULT_HOSTS
    interface: str = "eth0"


@dataclass(frozen=True)
class AppConfig:
    interval_seconds: float = 60.0
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)

    # Output logs (append-only)
    metrics_log: str = "system_load.log"
    alert_log: str = "alerts.log"
    cpu_spike_log: str = "cpu_spike_details.log"

    # Probes
    cpu_window_seconds: float = 1.0
    net_window_seconds: float = 1.0
    ping_count: int = 1
    ping_timeout_seconds: int = 2
    disk_path: str = "/"
    top_process_count: int = 5

    parallel_collection: bool = False
    alert_cooldown_seconds: int = 0   # 0 = every breach alerts

    log_level: str = "INFO"
    log_file: str = ""                # "" = console only


def ensure_dirs() -> None:
    APP_DIR.mkdir(parents=True, exist_ok=True)


def _is_int(v: Any) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_config(cfg: AppConfig) -> AppConfig:
    """Raise ConfigError if any value would make alerting decisions unsound."""
    t = cfg.thresholds
    for name in ("cpu_pct", "disk_pct", "mem_pct"):
        v = getattr(t, name)
        if not _is_int(v) or not 0 <= v <= 100:
            raise ConfigError(f"threshold {name} must be an integer 0-100, got {v!r}")
    if not _is_int(t.net_kbps) or t.net_kbps < 0:
        raise ConfigError(f"threshold net_kbps must be a non-negative integer, got {t.net_kbps!r}")

    if not isinstance(t.interface, str) or not t.interface.strip() or t.interface != t.interface.strip():
        raise ConfigError(f"invalid network interface name {t.interface!r}")

    for h in t.hosts:
        if not isinstance(h, str) or not h.strip() or h.startswith("-") or any(c.isspace() for c in h):
            raise ConfigError(f"invalid connectivity host {h!r}")

    if not _is_number(cfg.interval_seconds) or cfg.interval_seconds <= 0:
        raise ConfigError(f"interval_seconds must be positive, got {cfg.interval_seconds!r}")
    if not _is_number(cfg.cpu_window_seconds) or cfg.cpu_window_seconds <= 0:
        raise ConfigError("cpu_window_seconds must be positive")
    if not _is_number(cfg.net_window_seconds) or cfg.net_window_seconds <= 0:
        raise ConfigError("net_window_seconds must be positive")
    if not _is_int(cfg.ping_count) or cfg.ping_count < 1:
        raise ConfigError("ping_count must be >= 1")
    if not _is_int(cfg.ping_timeout_seconds) or cfg.ping_timeout_seconds < 1:
        raise ConfigError("ping_timeout_seconds must be >= 1")
    if not _is_int(cfg.top_process_count) or cfg.top_process_count < 1:
        raise ConfigError("top_process_count must be >= 1")
    if not _is_int(cfg.alert_cooldown_seconds) or cfg.alert_cooldown_seconds < 0:
        raise ConfigError("alert_cooldown_seconds must be >= 0")
    for name in ("metrics_log", "alert_log", "cpu_spike_log"):
        if not getattr(cfg, name):
            raise ConfigError(f"{name} path must not be empty")
    return cfg


def check_interface(cfg: AppConfig) -> None:
    """The configured interface has to exist on this host at startup."""
    try:
        available = sorted(psutil.net_if_stats())
    except (psutil.Error, OSError) as e:
        raise ConfigError(f"cannot list network interfaces: {e}") from e
    if cfg.thresholds.interface not in available:
        raise ConfigError(
            f"network interface {cfg.thresholds.interface!r} not found "
            f"(available: {', '.join(available) or 'none'})"
        )


def _dedupe(hosts: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for h in hosts:
        if h not in seen:
            seen.append(h)
    return tuple(seen)


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    if not isinstance(data, dict):
        raise ConfigError("config root must be a JSON object")
    raw_t = data.get("thresholds", {})
    if not isinstance(raw_t, dict):
        raise ConfigError("'thresholds' must be a JSON object")

    t_known = {k: raw_t[k] for k in raw_t if k in ThresholdConfig.__dataclass_fields__}
    if "hosts" in t_known:
        if not isinstance(t_known["hosts"], list):
            raise ConfigError("'thresholds.hosts' must be a list")
        t_known["hosts"] = _dedupe(t_known["hosts"])
    thresholds = ThresholdConfig(**t_known)

    known = {
        k: data[k] for k in data
        if k in AppConfig.__dataclass_fields__ and k != "thresholds"
    }
    return validate_config(AppConfig(thresholds=thresholds, **known))


def config_to_dict(cfg: AppConfig) -> Dict[str, Any]:
    d = asdict(cfg)
    d["thresholds"]["hosts"] = list(cfg.thresholds.hosts)
    return d


def load_config(path: Optional[Path] = None) -> AppConfig:
    """Load the config file, writing defaults on first run."""
    if path is None:
        ensure_dirs()
        path = CFG_PATH
    path = Path(path)
    if not path.exists():
        cfg = AppConfig()
        save_config(cfg, path)
        return cfg
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    try:
        return config_from_dict(data)
    except TypeError as e:
        raise ConfigError(f"invalid config {path}: {e}") from e


def save_config(cfg: AppConfig, path: Optional[Path] = None) -> None:
    if path is None:
        ensure_dirs()
        path = CFG_PATH
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    Path(path).write_text(json.dumps(config_to_dict(cfg), indent=2), encoding="utf-8")


def with_overrides(cfg: AppConfig, **overrides: Any) -> AppConfig:
    """Apply CLI overrides (None means 'not given') and re-validate."""
    t_over = {}
    for k in ("interface", "hosts"):
        v = overrides.pop(k, None)
        if v is not None:
            t_over[k] = _dedupe(v) if k == "hosts" else v
    a_over = {k: v for k, v in overrides.items() if v is not None}
    thresholds = replace(cfg.thresholds, **t_over)
    return validate_config(replace(cfg, thresholds=thresholds, **a_over))
