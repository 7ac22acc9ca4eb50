"""Append notes to case timelines and reschedule follow-ups."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from pastoral_care.core.datetime_utils import is_valid_moment, utc_timestamp
from pastoral_care.core.interfaces import ValidationError
from pastoral_care.core.models import Case, TimelineEntry, TimelineEntryType

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[], str]


@dataclass(frozen=True, slots=True)
class NoteRequest:
    """Input for appending a note to a case."""

    author_id: str | None
    content: str | None
    follow_up_date: str | None = None


def new_entry_id() -> str:
    """Return a short random timeline entry id."""
    return f"tl-{secrets.token_hex(3)}"


def validate_note(note: NoteRequest) -> None:
    """Raise :class:`ValidationError` naming every missing or malformed field."""
    missing = [
        name
        for name, value in (("content", note.content), ("author_id", note.author_id))
        if not (value and value.strip())
    ]
    if missing:
        raise ValidationError("content and authorId are required", fields=missing)
    follow_up = (note.follow_up_date or "").strip()
    if follow_up and not is_valid_moment(follow_up):
        raise ValidationError(
            "followUpDate must be an ISO 8601 date", fields=("follow_up_date",)
        )


class TimelineManager:
    """Sole writer of timeline content: adds notes, never edits or removes."""

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        """Allow the clock and id generator to be substituted in tests."""
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._id_factory = id_factory or new_entry_id

    def add_note(self, case: Case, note: NoteRequest) -> TimelineEntry:
        """Prepend a note to ``case`` and apply any follow-up date.

        When ``note.follow_up_date`` is given, both ``follow_up_date`` and
        ``next_action_due`` take that exact value.
        """
        validate_note(note)
        author_id = (note.author_id or "").strip()
        content = (note.content or "").strip()
        entry = TimelineEntry(
            id=self._id_factory(),
            type=TimelineEntryType.NOTE.value,
            timestamp=utc_timestamp(self._clock()),
            author_id=author_id,
            summary=content,
        )
        case.timeline = [entry, *case.timeline]
        follow_up = (note.follow_up_date or "").strip()
        if follow_up:
            case.follow_up_date = follow_up
            case.next_action_due = follow_up
            LOGGER.info("Follow-up for case %s moved to %s", case.id, follow_up)
        LOGGER.info("Note %s added to case %s by %s", entry.id, case.id, entry.author_id)
        return entry


__all__ = ["NoteRequest", "TimelineManager", "new_entry_id", "validate_note"]
