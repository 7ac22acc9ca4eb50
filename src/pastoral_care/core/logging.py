"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
from typing import Any

from .config import LoggingSettings

ROOT_LOGGER = "pastoral_care"


class ComponentFilter(logging.Filter):
    """Tag records with the package layer that emitted them.

    ``pastoral_care.casework.service`` becomes ``casework``; loggers outside
    the package keep their top-level name (``uvicorn``, ``fastapi``).
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Set ``record.component`` and keep the record."""
        head, _, rest = record.name.partition(".")
        if head == ROOT_LOGGER and rest:
            record.component = rest.split(".", 1)[0]
        else:
            record.component = head or "root"
        return True


def _structured_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for key=value structured logs."""
    return {
        "format": (
            "ts={asctime} level={levelname} component={component} "
            "logger={name} msg={message!r}"
        ),
        "style": "{",
    }


def _plain_formatter() -> dict[str, Any]:
    """Return a dictConfig fragment for human readable logs."""
    return {
        "format": "%(asctime)s %(levelname)-7s [%(component)s] %(message)s",
    }


def configure_logging(settings: LoggingSettings) -> None:
    """Configure console logging for the API, the CLI and their dependencies."""
    formatter = _structured_formatter() if settings.structured else _plain_formatter()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"component": {"()": ComponentFilter}},
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["component"],
                    "level": settings.level,
                },
            },
            "loggers": {
                ROOT_LOGGER: {"level": settings.level, "propagate": True},
                "uvicorn.access": {"level": "WARNING"},
            },
            "root": {"handlers": ["console"], "level": settings.level},
        }
    )


__all__ = ["ComponentFilter", "configure_logging"]
