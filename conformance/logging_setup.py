"""Central logging configuration for conformance runs.

Applies a root stdout handler so all module loggers emit without per-module
setup. Avoids duplicate handlers when a test runner calls it repeatedly.
"""
from __future__ import annotations
import copy
import logging
from logging.config import dictConfig
from typing import Optional

from conformance.config import load_config

_DICT_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "default",
            "stream": "ext://sys.stdout",
        }
    },
    "root": {"level": "INFO", "handlers": ["console"]},
    "loggers": {
        # Engine echo is noisy during reflection
        "sqlalchemy.engine": {"level": "WARNING", "propagate": True},
    },
}


def configure_logging(level: Optional[str] = None) -> None:
    """Configure application-wide logging once.

    Without an explicit level, `logging.level` from `load_config()` applies.

    If the root logger already has handlers, only the level is adjusted so
    repeated calls (pytest plugins, behave hooks) do not duplicate output.
    """
    if level is None:
        level = load_config().logging.level
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return
    config = copy.deepcopy(_DICT_CONFIG)
    config["root"]["level"] = level.upper()
    dictConfig(config)


__all__ = ["configure_logging"]
