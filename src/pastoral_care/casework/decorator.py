"""Join raw case records with the people they reference."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pastoral_care.core.datetime_utils import parse_moment
from pastoral_care.core.models import (
    Case,
    CaseView,
    Document,
    Student,
    TimelineEntry,
    TimelineEntryType,
    TimelineEntryView,
    User,
)


@dataclass(frozen=True, slots=True)
class DocumentIndex:
    """Id lookups over the reference collections of a document."""

    students: dict[str, Student]
    users: dict[str, User]

    @classmethod
    def build(cls, document: Document) -> DocumentIndex:
        """Index ``document``; on duplicate ids the first record wins."""
        students: dict[str, Student] = {}
        for student in document.students:
            students.setdefault(student.id, student)
        users: dict[str, User] = {}
        for user in document.users:
            users.setdefault(user.id, user)
        return cls(students=students, users=users)

    def student(self, student_id: str | None) -> Student | None:
        """Return the student with ``student_id``, or ``None`` when unknown."""
        if student_id is None:
            return None
        return self.students.get(student_id)

    def user(self, user_id: str | None) -> User | None:
        """Return the staff member with ``user_id``, or ``None`` when unknown."""
        if user_id is None:
            return None
        return self.users.get(user_id)


def decorate_case(
    case: Case, document: Document, *, index: DocumentIndex | None = None
) -> CaseView:
    """Return the read model for ``case``.

    Dangling references resolve to ``None``. Timeline entries gain the
    author's name (or the raw author id) and are ordered newest first.
    """
    lookup = index or DocumentIndex.build(document)
    timeline = tuple(
        _decorate_entry(entry, lookup) for entry in _newest_first(case.timeline)
    )
    return CaseView(
        id=case.id,
        status=case.status,
        next_action_due=case.next_action_due,
        follow_up_date=case.follow_up_date,
        reasons=tuple(case.reasons),
        overview=case.overview or "",
        email_alias=case.email_alias,
        student=lookup.student(case.student_id),
        advisor=lookup.user(case.advisor_id),
        owner=lookup.user(case.owner_id),
        timeline=timeline,
    )


def decorate_cases(cases: Iterable[Case], document: Document) -> tuple[CaseView, ...]:
    """Decorate several cases against one shared index."""
    index = DocumentIndex.build(document)
    return tuple(decorate_case(case, document, index=index) for case in cases)


def _decorate_entry(entry: TimelineEntry, index: DocumentIndex) -> TimelineEntryView:
    author = index.user(entry.author_id)
    return TimelineEntryView(
        id=entry.id,
        type=entry.type,
        title=TimelineEntryType.resolve(entry.type).heading,
        timestamp=entry.timestamp,
        author_id=entry.author_id,
        author_name=author.name if author else entry.author_id,
        summary=entry.summary,
    )


def _newest_first(entries: Iterable[TimelineEntry]) -> list[TimelineEntry]:
    # Stable sort: equal timestamps keep storage order, unparseable ones go last.
    def sort_key(entry: TimelineEntry) -> tuple[bool, float]:
        moment = parse_moment(entry.timestamp)
        if moment is None:
            return (True, 0.0)
        return (False, -moment.timestamp())

    return sorted(entries, key=sort_key)


__all__ = ["DocumentIndex", "decorate_case", "decorate_cases"]
