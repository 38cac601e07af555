"""Logging utilities for voiceattack."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured: dict[str, logging.Logger] = {}
_level = logging.INFO


def setup_logger(name: str) -> logging.Logger:
    """Set up a logger with a console handler.

    Args:
        name: Logger name (typically __name__).

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if name in _configured:
        return logger

    logger.setLevel(_level)
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    _configured[name] = logger
    return logger


def set_log_level(level: str) -> None:
    """Apply a level name (e.g. "DEBUG") to every logger created so far."""
    global _level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level: {level}")
    _level = resolved
    for logger in _configured.values():
        logger.setLevel(resolved)
