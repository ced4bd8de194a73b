"""Logging setup for the prizeboard logger tree."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)-5s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger("prizeboard")


def configure_logging(level: str = "INFO") -> logging.Logger:
    logger.setLevel(level)
    logger.propagate = False
    # Avoid duplicate handlers when create_app() runs more than once.
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        logger.addHandler(handler)
    return logger
