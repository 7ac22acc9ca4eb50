"""Tests for datetime helpers."""

from __future__ import annotations

import time
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest

from pastoral_care.casework.queue import DueStatus, classify_due
from pastoral_care.core.datetime_utils import (
    is_before_today,
    is_same_local_day,
    parse_moment,
    start_of_day,
    utc_timestamp,
)

NOW = datetime(2024, 5, 20, 12, 0)


def test_parse_moment_handles_dates_timestamps_and_garbage() -> None:
    assert parse_moment(None) is None
    assert parse_moment("   ") is None
    assert parse_moment("next tuesday") is None

    date_only = parse_moment("2024-06-01")
    assert date_only is not None
    assert date_only.tzinfo is not None
    assert (date_only.year, date_only.month, date_only.day, date_only.hour) == (2024, 6, 1, 0)

    zulu = parse_moment("2024-05-20T09:00:00Z")
    assert zulu is not None
    assert zulu == datetime(2024, 5, 20, 9, 0, tzinfo=UTC)


def test_day_boundaries_are_local() -> None:
    midnight = start_of_day(NOW)
    assert (midnight.hour, midnight.minute, midnight.second) == (0, 0, 0)
    assert midnight.date() == NOW.date()

    yesterday_evening = parse_moment("2024-05-19T23:59:59")
    today_morning = parse_moment("2024-05-20T00:00:00")
    assert yesterday_evening is not None and today_morning is not None
    assert is_before_today(yesterday_evening, NOW)
    assert not is_before_today(today_morning, NOW)
    assert is_same_local_day(today_morning, NOW)
    assert not is_same_local_day(yesterday_evening, NOW)


def test_utc_timestamp_uses_millisecond_zulu_format() -> None:
    moment = datetime(2024, 5, 20, 9, 30, 15, 123456, tzinfo=UTC)
    assert utc_timestamp(moment) == "2024-05-20T09:30:15.123Z"


@pytest.fixture()
def london_time(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Run the test with local time set to a zone that observes daylight saving."""

    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is unavailable on this platform")
    monkeypatch.setenv("TZ", "Europe/London")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()


@pytest.mark.usefixtures("london_time")
def test_midnight_uses_offset_in_force_at_midnight() -> None:
    clocks_forward = datetime(2024, 3, 31, 12, 0)

    midnight = start_of_day(clocks_forward)

    assert midnight.utcoffset() == timedelta(0)
    assert midnight == datetime(2024, 3, 31, 0, 0, tzinfo=UTC)


@pytest.mark.usefixtures("london_time")
def test_due_status_on_clocks_forward_day() -> None:
    clocks_forward = datetime(2024, 3, 31, 12, 0)

    assert classify_due("2024-03-30T23:30:00Z", now=clocks_forward) is DueStatus.OVERDUE
    assert classify_due("2024-03-31T00:30:00Z", now=clocks_forward) is DueStatus.TODAY
    assert classify_due("2024-03-31", now=clocks_forward) is DueStatus.TODAY
    assert classify_due("2024-03-31T23:30:00Z", now=clocks_forward) is DueStatus.UPCOMING


@pytest.mark.usefixtures("london_time")
def test_same_local_day_on_clocks_back_day() -> None:
    clocks_back = datetime(2024, 10, 27, 12, 0)

    summer_time_after_midnight = parse_moment("2024-10-26T23:30:00Z")
    summer_time_before_midnight = parse_moment("2024-10-26T22:30:00Z")
    assert summer_time_after_midnight is not None
    assert summer_time_before_midnight is not None
    assert is_same_local_day(summer_time_after_midnight, clocks_back)
    assert not is_same_local_day(summer_time_before_midnight, clocks_back)
    assert is_before_today(summer_time_before_midnight, clocks_back)
