"""Logging configuration.

Provides consistent log formatting across feature modules.
"""

from __future__ import annotations

import logging
import sys

_loggers: dict[str, logging.Logger] = {}
_level = logging.INFO


def configure(level: str | int) -> None:
    """Set the level applied to loggers created from now on (and existing ones)."""
    global _level
    _level = logging.getLevelName(level) if isinstance(level, str) else int(level)
    if not isinstance(_level, int):
        _level = logging.INFO
    for logger in _loggers.values():
        logger.setLevel(_level)
        for handler in logger.handlers:
            handler.setLevel(_level)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger for a module (e.g. 'hrms.payroll')."""
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(_level)
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(name)s] %(levelname)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(handler)
        logger.propagate = False

    _loggers[name] = logger
    return logger
