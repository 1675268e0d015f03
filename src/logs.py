"""Process-wide logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def resolve_level(name: str) -> int | None:
    """Map a LOG_LEVEL value to a logging level, or None if unknown."""
    return _LEVELS.get(name.strip().lower())


def configure_logging(level_name: str) -> int:
    """Install one stream handler on the root logger and return the level used."""
    level = resolve_level(level_name)
    logging.basicConfig(level=level or logging.INFO, format=LOG_FORMAT, datefmt=DATE_FORMAT, force=True)
    if level is None:
        logging.warning("Unknown LOG_LEVEL '%s', using info", level_name)
        level = logging.INFO
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    return level
