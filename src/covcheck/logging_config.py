"""Logging setup for the covcheck logger.

Only the "covcheck" logger is configured; the host application keeps
control of the root logger. Without setup, covcheck records propagate
to whatever the host configured.
"""

from __future__ import annotations

import logging.config
from typing import Any

LOGGER_NAME = "covcheck"

LOGGING_CONFIG: dict[str, Any] = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "rich": {
            "format": "%(name)s: %(message)s",
            "datefmt": "[%X]",
        },
    },
    "handlers": {
        "console": {
            "class": "rich.logging.RichHandler",
            "level": "DEBUG",
            "formatter": "rich",
            "show_path": False,
            "markup": False,
        },
    },
    "loggers": {
        LOGGER_NAME: {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        },
    },
}


def setup_logging() -> None:
    """Send covcheck DEBUG logs to a RichHandler (debug mode)."""
    logging.config.dictConfig(LOGGING_CONFIG)
