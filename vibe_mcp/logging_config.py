"""
Logging setup for the server process.

stdout belongs to the protocol, so every diagnostic goes to stderr.
The level comes from VIBE_LOG_LEVEL (error, warn, info, debug or 0-3).
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER = "vibe_mcp"
LOG_LEVEL_ENV = "VIBE_LOG_LEVEL"
LOG_FORMAT = "[VibeMCP:%(levelname)s] [%(name)s] %(message)s"

_LEVELS = {
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    # numeric form: 0=error ... 3=debug
    "0": logging.ERROR,
    "1": logging.WARNING,
    "2": logging.INFO,
    "3": logging.DEBUG,
}


def resolve_log_level(value: str | None) -> int:
    """Map a VIBE_LOG_LEVEL value to a logging level. Unknown values mean INFO."""
    if value is None:
        return logging.INFO
    return _LEVELS.get(value.strip().lower(), logging.INFO)


def configure_logging(level: str | None = None) -> logging.Logger:
    """
    Attach a single stderr handler to the package logger.

    Args:
        level: Explicit level name; falls back to $VIBE_LOG_LEVEL.

    Returns:
        The configured package logger. Components derive children from it.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(resolve_log_level(level if level is not None else os.environ.get(LOG_LEVEL_ENV)))

    for handler in list(logger.handlers):
        if getattr(handler, "_vibe_mcp", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._vibe_mcp = True
    logger.addHandler(handler)
    logger.propagate = False
    return logger
