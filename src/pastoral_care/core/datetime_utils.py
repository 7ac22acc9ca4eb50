"""Datetime helpers shared across the application.

Due dates and timestamps are stored as ISO 8601 strings exactly as they were
supplied. Comparisons happen on local, timezone-aware ``datetime`` values:
date-only and naive values are read as local time, aware values are converted.
"""

from __future__ import annotations

from datetime import UTC, datetime, time

__all__ = [
    "as_local",
    "is_before_today",
    "is_same_local_day",
    "is_valid_moment",
    "local_now",
    "parse_moment",
    "start_of_day",
    "utc_timestamp",
]


def as_local(value: datetime) -> datetime:
    """Return ``value`` as an aware datetime in the local timezone."""
    return value.astimezone()


def local_now() -> datetime:
    """Return the current local time, timezone-aware."""
    return datetime.now().astimezone()


def parse_moment(value: str | None) -> datetime | None:
    """Parse an ISO 8601 date or timestamp; blank or invalid input gives ``None``."""
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return as_local(parsed)


def is_valid_moment(value: str | None) -> bool:
    """Return ``True`` when ``value`` parses as an ISO 8601 date or timestamp."""
    return parse_moment(value) is not None


def start_of_day(moment: datetime) -> datetime:
    """Return local midnight of the day containing ``moment``."""
    return datetime.combine(as_local(moment).date(), time()).astimezone()


def is_same_local_day(moment: datetime, now: datetime) -> bool:
    """Return ``True`` when both instants fall on the same local calendar day."""
    return as_local(moment).date() == as_local(now).date()


def is_before_today(moment: datetime, now: datetime) -> bool:
    """Return ``True`` when ``moment`` is strictly before local midnight today."""
    return moment < start_of_day(now)


def utc_timestamp(moment: datetime | None = None) -> str:
    """Serialise ``moment`` (default: now) as UTC ISO 8601 with millisecond precision."""
    value = moment if moment is not None else datetime.now(tz=UTC)
    if value.tzinfo is None:
        value = value.astimezone()
    text = value.astimezone(UTC).isoformat(timespec="milliseconds")
    return text.replace("+00:00", "Z")
