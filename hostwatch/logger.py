"""
Logging setup for the monitor's own diagnostics.

The metrics, alert and CPU-spike logs are written by ``store``; this module
only configures the ``hostwatch`` logger hierarchy (console plus an optional
rotating file).
"""
from __future__ import annotations

import logging
import logging.handlers
import os
from typing import Optional

DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
ROOT_LOGGER_NAME = "hostwatch"


def _get_log_level(level_name: str, default_level: int = logging.INFO) -> int:
    """
    Convert a level name such as ``"debug"`` to its logging constant.

    :param level_name: Name of the log level
    :param default_level: Level used when the name is unknown
    :return: logging level constant
    """
    level = logging.getLevelName(str(level_name).upper())
    if isinstance(level, int):
        return level
    logging.getLogger(ROOT_LOGGER_NAME).warning(
        f"Invalid log level name '{level_name}'. Using {logging.getLevelName(default_level)}."
    )
    return default_level


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
) -> logging.Logger:
    """
    Configure the ``hostwatch`` logger with a console handler and, when
    ``log_file`` is given, a size-rotated file handler.

    Calling it again replaces the handlers installed by the previous call.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(_get_log_level(level))

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(DEFAULT_LOG_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        try:
            directory = os.path.dirname(os.path.abspath(log_file))
            os.makedirs(directory, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding='utf-8',
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.debug(f"File logging enabled to: {log_file}")
        except OSError as e:
            logger.error(f"Failed to set up file logging to {log_file}: {e}. Logging to console only.")

    return logger


def get_logger(name: str) -> logging.Logger:
    """Module logger under the ``hostwatch`` hierarchy."""
    if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
