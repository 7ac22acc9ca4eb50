"""Tests for logging utilities."""

from __future__ import annotations

import logging

import pytest

from pastoral_care.core.config import LoggingSettings
from pastoral_care.core.logging import (
    ComponentFilter,
    _plain_formatter,
    _structured_formatter,
    configure_logging,
)


def _record(name: str, message: str = "Closed case %s") -> logging.LogRecord:
    return logging.LogRecord(name, logging.INFO, __file__, 1, message, ("c-1",), None)


def test_configure_logging_sets_root_level() -> None:
    """configure_logging should set the root logger level according to settings."""

    settings = LoggingSettings(level="DEBUG", structured=False)
    configure_logging(settings)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.WARNING
    assert any(
        isinstance(f, ComponentFilter)
        for handler in logging.getLogger().handlers
        for f in handler.filters
    )


@pytest.mark.parametrize(
    ("logger_name", "component"),
    [
        ("pastoral_care.casework.service", "casework"),
        ("pastoral_care.storage", "storage"),
        ("pastoral_care", "pastoral_care"),
        ("uvicorn.error", "uvicorn"),
    ],
)
def test_component_filter_tags_layer(logger_name: str, component: str) -> None:
    record = _record(logger_name)

    assert ComponentFilter().filter(record)
    assert record.component == component


def test_structured_format_renders_key_value_pairs() -> None:
    fragment = _structured_formatter()
    formatter = logging.Formatter(fragment["format"], style=fragment["style"])
    record = _record("pastoral_care.casework.lifecycle")
    ComponentFilter().filter(record)

    rendered = formatter.format(record)

    assert "level=INFO" in rendered
    assert "component=casework" in rendered
    assert "logger=pastoral_care.casework.lifecycle" in rendered
    assert "msg='Closed case c-1'" in rendered


def test_plain_format_shows_component() -> None:
    formatter = logging.Formatter(_plain_formatter()["format"])
    record = _record("pastoral_care.storage.sqlite", "Stored revision %s")
    ComponentFilter().filter(record)

    assert formatter.format(record).endswith("INFO    [storage] Stored revision c-1")
