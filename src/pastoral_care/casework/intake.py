"""Record lecturer-submitted concerns for later triage."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from pastoral_care.core.datetime_utils import utc_timestamp
from pastoral_care.core.interfaces import ValidationError
from pastoral_care.core.models import Document, IntakeRecord

LOGGER = logging.getLogger(__name__)

DEFAULT_LECTURER_NAME = "Unknown lecturer"


@dataclass(frozen=True, slots=True)
class IntakeSubmission:
    """Concern raised by a lecturer about a student."""

    student_email: str | None
    summary: str | None
    lecturer_name: str | None = None


def new_intake_id() -> str:
    """Return a short random intake record id."""
    return f"intake-{secrets.token_hex(3)}"


class IntakeService:
    """Create intake records; converting them into cases happens elsewhere."""

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] | None = None,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        """Allow the clock and id generator to be substituted in tests."""
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._id_factory = id_factory or new_intake_id

    @staticmethod
    def validate(submission: IntakeSubmission) -> None:
        """Raise :class:`ValidationError` when a required field is blank."""
        missing = [
            name
            for name, value in (
                ("student_email", submission.student_email),
                ("summary", submission.summary),
            )
            if not (value and value.strip())
        ]
        if missing:
            raise ValidationError(
                "studentEmail and summary are required", fields=missing
            )

    def submit(self, document: Document, submission: IntakeSubmission) -> IntakeRecord:
        """Build a ``new`` intake record and put it at the head of the intake list."""
        self.validate(submission)
        lecturer = (submission.lecturer_name or "").strip()
        record = IntakeRecord(
            id=self._id_factory(),
            student_email=(submission.student_email or "").strip(),
            lecturer_name=lecturer or DEFAULT_LECTURER_NAME,
            summary=(submission.summary or "").strip(),
            submitted_at=utc_timestamp(self._clock()),
            status="new",
        )
        document.intake_queue = [record, *document.intake_queue]
        LOGGER.info("Intake %s submitted for %s", record.id, record.student_email)
        return record


__all__ = [
    "DEFAULT_LECTURER_NAME",
    "IntakeService",
    "IntakeSubmission",
    "new_intake_id",
]
