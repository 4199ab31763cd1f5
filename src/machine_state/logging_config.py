"""Logging utilities."""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler

from .config import LoggingConfig


def configure_logging(config: LoggingConfig) -> None:
    """Configure the logging subsystem based on configuration."""
    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers = []

    # stdout carries the JSON report
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    log_path = None
    if config.log_dir is not None:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        log_path = config.log_dir / "machine-state.log"
        rotating_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=5)
        rotating_handler.setFormatter(formatter)
        handlers.append(rotating_handler)

    logging.basicConfig(level=config.level, handlers=handlers, force=True)

    logging.getLogger(__name__).debug("Logging configured with path %s", log_path)
