"""Camera catalog browsing: query composition and image resolution."""

from __future__ import annotations

import logging
import os

LOGGER_NAME = "camcatalog"
LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def get_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
    return logger


def set_verbose(verbose: bool) -> None:
    """Switch to DEBUG, or re-read CATALOG_LOG_LEVEL (e.g. after a .env load)."""
    get_logger().setLevel(logging.DEBUG if verbose else _level_from_env())


def _level_from_env() -> int:
    name = os.getenv("CATALOG_LOG_LEVEL", "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
