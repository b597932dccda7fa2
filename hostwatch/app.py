from __future__ import annotations
import argparse
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, ConfigError, check_interface, load_config, with_overrides
from .logger import get_logger, setup_logging
from .scheduler import Scheduler
from .workers import MonitorWorker

logger = get_logger("hostwatch.app")

EXIT_OK = 0
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="hostwatch",
        description="Sample CPU, disk, memory, network and connectivity on a fixed "
                    "interval, log every sample and write threshold alerts.",
    )
    p.add_argument("--config", type=Path, default=None,
                   help="JSON config file (default: ~/.hostwatch/config.json)")
    p.add_argument("--interval", type=float, default=None, dest="interval_seconds",
                   help="seconds between the end of one cycle and the next")
    p.add_argument("--interface", default=None, help="network interface to sample")
    p.add_argument("--host", action="append", default=None, dest="hosts",
                   help="connectivity probe target; repeat to give several")
    p.add_argument("--parallel", action="store_true", default=None, dest="parallel_collection",
                   help="run collectors concurrently within a cycle")
    p.add_argument("--once", action="store_true", help="run a single cycle and exit")
    p.add_argument("--log-level", default=None, dest="log_level")
    p.add_argument("--log-file", default=None, dest="log_file",
                   help="also write diagnostics to this rotating file")
    return p


def resolve_config(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    cfg = with_overrides(
        cfg,
        interface=args.interface,
        hosts=args.hosts,
        interval_seconds=args.interval_seconds,
        parallel_collection=args.parallel_collection,
        log_level=args.log_level,
        log_file=args.log_file,
    )
    check_interface(cfg)
    return cfg


def install_signal_handlers(scheduler: Scheduler) -> None:
    def _handler(signum, frame):
        logger.info(f"Received signal {signum}, finishing current cycle...")
        scheduler.stop()

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level or "INFO", args.log_file)

    try:
        cfg = resolve_config(args)
    except ConfigError as e:
        logger.error(f"configuration error: {e}")
        return EXIT_CONFIG

    setup_logging(cfg.log_level, cfg.log_file or None)
    t = cfg.thresholds
    logger.info(
        f"Starting system monitor: interval={cfg.interval_seconds}s interface={t.interface} "
        f"cpu>{t.cpu_pct}% disk>{t.disk_pct}% mem>{t.mem_pct}% net>{t.net_kbps}KB/s "
        f"hosts={','.join(t.hosts) or '-'}"
    )

    worker = MonitorWorker.from_config(cfg)
    scheduler = Scheduler(worker, cfg.interval_seconds)
    install_signal_handlers(scheduler)

    worker.store.write_banner()
    try:
        scheduler.run(max_cycles=1 if args.once else None)
    finally:
        worker.store.write_stop_banner()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
