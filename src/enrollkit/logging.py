"""Logging setup for EnrollKit.

Every component logs below the ``enrollkit`` logger. ``setup_logging`` reads
the ``logging`` section of enrollkit.yaml and attaches a rotating file handler
plus, optionally, a console handler on stderr.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from enrollkit.config import LoggingConfig

ROOT_LOGGER = "enrollkit"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    config: LoggingConfig | None = None,
    *,
    console: bool | None = None,
) -> logging.Logger:
    """Configure the ``enrollkit`` logger.

    Handlers left by an earlier call are closed and replaced, so repeated
    setup (tests, ``enrollkit serve`` after config reload) never duplicates
    output.

    Args:
        config: Logging section of the loaded configuration. Defaults to
            ``LoggingConfig()``.
        console: Overrides ``config.console``. CLI commands pass False so
            their stdout stays machine-readable.

    Returns:
        The root enrollkit logger.
    """
    config = config or LoggingConfig()
    level = logging.getLevelNamesMapping().get(config.level.upper(), logging.INFO)
    log_dir = Path(config.dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    log_path = log_dir / config.file
    file_handler = RotatingFileHandler(
        log_path,
        maxBytes=config.max_bytes,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if config.console if console is None else console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    logger.info("Logging to %s at %s", log_path, logging.getLevelName(level))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a component, e.g. ``get_logger("kv_store")`` -> ``enrollkit.kv_store``."""
    if not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
