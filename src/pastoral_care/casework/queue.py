"""Project decorated cases into a due-date ordered queue."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from enum import StrEnum

from pastoral_care.core.datetime_utils import (
    is_before_today,
    is_same_local_day,
    local_now,
    parse_moment,
)
from pastoral_care.core.interfaces import ValidationError
from pastoral_care.core.models import CaseView, QueueItem, QueueSummary


class QueueFilter(StrEnum):
    """Filter modes offered above a queue."""

    ALL = "all"
    TODAY = "today"
    OVERDUE = "overdue"

    @classmethod
    def parse(cls, raw: str | QueueFilter) -> QueueFilter:
        """Return the filter for ``raw`` or raise :class:`ValidationError`."""
        try:
            return cls(str(raw).strip().lower())
        except ValueError as exc:
            options = ", ".join(member.value for member in cls)
            raise ValidationError(
                f"filter must be one of: {options}", fields=("filter",)
            ) from exc


class DueStatus(StrEnum):
    """Badge describing when a queue item is due."""

    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"
    UNSCHEDULED = "unscheduled"


def project_queue(cases: Iterable[CaseView]) -> tuple[QueueItem, ...]:
    """Return queue items sorted ascending by next action due.

    Items without a parseable due date sort last; ties keep input order.
    """
    return tuple(_to_queue_item(view) for view in sort_by_due(cases))


def sort_by_due(cases: Iterable[CaseView]) -> tuple[CaseView, ...]:
    """Return ``cases`` in canonical queue order."""
    return tuple(sorted(cases, key=_due_sort_key))


def filter_queue(
    queue: Sequence[QueueItem],
    mode: str | QueueFilter,
    *,
    now: datetime | None = None,
) -> tuple[QueueItem, ...]:
    """Return the items of ``queue`` matching ``mode`` in their original order."""
    selected = QueueFilter.parse(mode)
    if selected is QueueFilter.ALL:
        return tuple(queue)
    reference = now or local_now()
    wanted = DueStatus.TODAY if selected is QueueFilter.TODAY else DueStatus.OVERDUE
    return tuple(
        item
        for item in queue
        if classify_due(item.next_action_due, now=reference) is wanted
    )


def classify_due(value: str | None, *, now: datetime | None = None) -> DueStatus:
    """Classify a due date relative to the local calendar day of ``now``.

    Overdue takes precedence over today, so the two are disjoint.
    """
    due = parse_moment(value)
    if due is None:
        return DueStatus.UNSCHEDULED
    reference = now or local_now()
    if is_before_today(due, reference):
        return DueStatus.OVERDUE
    if is_same_local_day(due, reference):
        return DueStatus.TODAY
    return DueStatus.UPCOMING


def summarize_queue(
    queue: Sequence[QueueItem], *, now: datetime | None = None
) -> QueueSummary:
    """Count the items due today and overdue."""
    reference = now or local_now()
    statuses = [classify_due(item.next_action_due, now=reference) for item in queue]
    return QueueSummary(
        total=len(queue),
        due_today=statuses.count(DueStatus.TODAY),
        overdue=statuses.count(DueStatus.OVERDUE),
    )


def select_active_case(
    queue: Sequence[QueueItem], previous_id: str | None = None
) -> str | None:
    """Keep ``previous_id`` when it is still listed, otherwise pick the first item."""
    if previous_id is not None and any(item.id == previous_id for item in queue):
        return previous_id
    return queue[0].id if queue else None


def _due_sort_key(view: CaseView) -> tuple[bool, float]:
    due = parse_moment(view.next_action_due)
    if due is None:
        return (True, 0.0)
    return (False, due.timestamp())


def _to_queue_item(view: CaseView) -> QueueItem:
    return QueueItem(
        id=view.id,
        student_name=view.student.name if view.student else None,
        next_action_due=view.next_action_due,
        reasons=view.reasons,
        overview=view.overview,
        advisor_name=view.advisor.name if view.advisor else None,
        advisor_email=view.advisor.email if view.advisor else None,
        owner_email=view.owner.email if view.owner else None,
        email_alias=view.email_alias,
    )


__all__ = [
    "DueStatus",
    "QueueFilter",
    "classify_due",
    "filter_queue",
    "project_queue",
    "select_active_case",
    "sort_by_due",
    "summarize_queue",
]
