"""Core domain models used across the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class CaseStatus(StrEnum):
    """Lifecycle states of a case."""

    OPEN = "open"
    CLOSED = "closed"


class ReasonCode(StrEnum):
    """Known triggers explaining why a case needs attention."""

    MISSED_SUBMISSION = "missed_submission"
    UNANSWERED_MESSAGE = "unanswered_message"
    EC_DEADLINE = "ec_deadline"
    NO_ACTIVITY_14D = "no_activity_14d"


class TimelineEntryType(StrEnum):
    """Kinds of interaction recorded on a case timeline."""

    NOTE = "note"
    EMAIL_OUT = "email_out"
    EMAIL_IN = "email_in"
    MEETING = "meeting"
    CONCERN = "concern"

    @property
    def heading(self) -> str:
        """Heading shown for entries of this type."""
        return _ENTRY_HEADINGS[self]

    @classmethod
    def resolve(cls, raw: str) -> TimelineEntryType:
        """Map a stored type string to a member; unknown types read as notes."""
        try:
            return cls(raw)
        except ValueError:
            return cls.NOTE


_ENTRY_HEADINGS = {
    TimelineEntryType.NOTE: "Note",
    TimelineEntryType.EMAIL_OUT: "Email sent",
    TimelineEntryType.EMAIL_IN: "Email received",
    TimelineEntryType.MEETING: "Meeting",
    TimelineEntryType.CONCERN: "Lecturer concern",
}


@dataclass(slots=True)
class Student:
    """Student reference record."""

    id: str
    name: str
    email: str | None = None
    course: str | None = None
    stage: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    absent_keys: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )


@dataclass(slots=True)
class User:
    """Staff member acting as advisor or case owner."""

    id: str
    name: str
    email: str | None = None
    role: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    absent_keys: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )


@dataclass(frozen=True, slots=True)
class TimelineEntry:
    """One immutable interaction on a case timeline.

    ``type`` is kept as the stored string so entry kinds written by other
    producers survive a save unchanged.
    """

    id: str
    type: str
    timestamp: str
    author_id: str
    summary: str
    extra: dict[str, Any] = field(default_factory=dict, compare=False)
    absent_keys: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )


# pylint: disable=too-many-instance-attributes
@dataclass(slots=True)
class Case:
    """A tracked student situation requiring pastoral follow-up."""

    id: str
    student_id: str | None
    advisor_id: str | None
    owner_id: str | None
    status: str = CaseStatus.OPEN.value
    reasons: tuple[str, ...] = ()
    overview: str = ""
    email_alias: str | None = None
    next_action_due: str | None = None
    follow_up_date: str | None = None
    timeline: list[TimelineEntry] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)
    absent_keys: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )


@dataclass(frozen=True, slots=True)
class IntakeRecord:
    """Lecturer-submitted concern awaiting conversion into a case."""

    id: str
    student_email: str
    lecturer_name: str
    summary: str
    submitted_at: str
    status: str = "new"
    extra: dict[str, Any] = field(default_factory=dict, compare=False)
    absent_keys: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )


@dataclass(frozen=True, slots=True)
class EmailInboxItem:
    """Forwarded email as delivered by the upstream mail pipeline."""

    id: str
    sender: str | None
    subject: str | None
    preview: str | None
    timestamp: str | None
    status: str | None
    extra: dict[str, Any] = field(default_factory=dict, compare=False)
    absent_keys: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )

    @property
    def is_unmatched(self) -> bool:
        """Return ``True`` when the email has not been linked to a case."""
        return self.status == "unmatched"


@dataclass(slots=True)
class Document:
    """Entire persisted state, loaded and saved as one unit."""

    students: list[Student] = field(default_factory=list)
    users: list[User] = field(default_factory=list)
    cases: list[Case] = field(default_factory=list)
    intake_queue: list[IntakeRecord] = field(default_factory=list)
    email_inbox: list[EmailInboxItem] = field(default_factory=list)
    revision: int = 0
    extra: dict[str, Any] = field(default_factory=dict)
    absent_keys: frozenset[str] = field(
        default_factory=frozenset, compare=False, repr=False
    )

    def find_case(self, case_id: str) -> Case | None:
        """Return the case with ``case_id`` if present."""
        for case in self.cases:
            if case.id == case_id:
                return case
        return None


@dataclass(frozen=True, slots=True)
class TimelineEntryView:
    """Timeline entry joined with its author's display name."""

    id: str
    type: str
    title: str
    timestamp: str
    author_id: str
    author_name: str
    summary: str


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class CaseView:
    """Read model of a case joined with its student, advisor and owner."""

    id: str
    status: str
    next_action_due: str | None
    follow_up_date: str | None
    reasons: tuple[str, ...]
    overview: str
    email_alias: str | None
    student: Student | None
    advisor: User | None
    owner: User | None
    timeline: tuple[TimelineEntryView, ...]


# pylint: disable=too-many-instance-attributes
@dataclass(frozen=True, slots=True)
class QueueItem:
    """Row of a triage or advisor queue."""

    id: str
    student_name: str | None
    next_action_due: str | None
    reasons: tuple[str, ...]
    overview: str
    advisor_name: str | None
    advisor_email: str | None
    owner_email: str | None
    email_alias: str | None


@dataclass(frozen=True, slots=True)
class QueueSummary:
    """Counts shown above a queue."""

    total: int
    due_today: int
    overdue: int


@dataclass(frozen=True, slots=True)
class TriageDashboard:
    """Coordinator-facing queue across all cases plus supporting lists."""

    filter: str
    queue: tuple[QueueItem, ...]
    cases: tuple[CaseView, ...]
    intake_queue: tuple[IntakeRecord, ...]
    unmatched_emails: tuple[EmailInboxItem, ...]
    summary: QueueSummary


@dataclass(frozen=True, slots=True)
class AdvisorDashboard:
    """Queue scoped to a single advisor's assigned cases."""

    advisor_id: str
    filter: str
    queue: tuple[QueueItem, ...]
    cases: tuple[CaseView, ...]
    summary: QueueSummary


@dataclass(frozen=True, slots=True)
class ForwardTemplate:
    """Plain-text email template for handing a case to someone else."""

    to: str
    cc: tuple[str, ...]
    subject: str
    body: str


__all__ = [
    "AdvisorDashboard",
    "Case",
    "CaseStatus",
    "CaseView",
    "Document",
    "EmailInboxItem",
    "ForwardTemplate",
    "IntakeRecord",
    "QueueItem",
    "QueueSummary",
    "ReasonCode",
    "Student",
    "TimelineEntry",
    "TimelineEntryType",
    "TimelineEntryView",
    "TriageDashboard",
    "User",
]
