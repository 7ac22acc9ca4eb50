"""Outward casework operations over a whole-document repository.

Reads load the document once and project it. Each mutation performs load,
exactly one transition, then save, while holding a process-wide writer lock.
The repository's revision check rejects saves from writers outside this
process whose load predates another save.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from typing import TypeVar

from pastoral_care.core.config import CoordinatorSettings
from pastoral_care.core.interfaces import DocumentRepository, NotFoundError
from pastoral_care.core.models import (
    AdvisorDashboard,
    Case,
    CaseView,
    Document,
    EmailInboxItem,
    ForwardTemplate,
    IntakeRecord,
    TriageDashboard,
)

from .decorator import decorate_case, decorate_cases
from .intake import IntakeService, IntakeSubmission
from .lifecycle import CaseLifecycle
from .messaging import build_forward_template
from .queue import (
    QueueFilter,
    filter_queue,
    project_queue,
    sort_by_due,
    summarize_queue,
)
from .timeline import NoteRequest, TimelineManager, validate_note

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class CaseworkService:
    """Dashboard queries and case mutations consumed by the presentation layer."""

    def __init__(
        self,
        repository: DocumentRepository,
        *,
        timeline: TimelineManager | None = None,
        lifecycle: CaseLifecycle | None = None,
        intake: IntakeService | None = None,
        coordinator: CoordinatorSettings | None = None,
    ) -> None:
        """Wire the repository and the transition components."""
        self._repository = repository
        self._timeline = timeline or TimelineManager()
        self._lifecycle = lifecycle or CaseLifecycle()
        self._intake = intake or IntakeService()
        self._coordinator = coordinator or CoordinatorSettings()
        self._write_lock = threading.Lock()

    # Queries -----------------------------------------------------------------
    def get_triage_queue(
        self,
        filter_mode: str | QueueFilter = QueueFilter.ALL,
        *,
        now: datetime | None = None,
    ) -> TriageDashboard:
        """Return the coordinator queue across every case plus supporting lists."""
        mode = QueueFilter.parse(filter_mode)
        document = self._repository.load()
        views = sort_by_due(decorate_cases(document.cases, document))
        queue = project_queue(views)
        return TriageDashboard(
            filter=mode.value,
            queue=filter_queue(queue, mode, now=now),
            cases=views,
            intake_queue=tuple(document.intake_queue),
            unmatched_emails=tuple(
                item for item in document.email_inbox if item.is_unmatched
            ),
            summary=summarize_queue(queue, now=now),
        )

    def get_advisor_queue(
        self,
        advisor_id: str,
        filter_mode: str | QueueFilter = QueueFilter.ALL,
        *,
        now: datetime | None = None,
    ) -> AdvisorDashboard:
        """Return the queue of cases assigned to ``advisor_id``."""
        mode = QueueFilter.parse(filter_mode)
        document = self._repository.load()
        assigned = [case for case in document.cases if case.advisor_id == advisor_id]
        views = sort_by_due(decorate_cases(assigned, document))
        queue = project_queue(views)
        return AdvisorDashboard(
            advisor_id=advisor_id,
            filter=mode.value,
            queue=filter_queue(queue, mode, now=now),
            cases=views,
            summary=summarize_queue(queue, now=now),
        )

    def get_case(self, case_id: str) -> CaseView:
        """Return the decorated case or raise :class:`NotFoundError`."""
        document = self._repository.load()
        return decorate_case(_require_case(document, case_id), document)

    def list_email_inbox(self) -> tuple[EmailInboxItem, ...]:
        """Return every forwarded email as delivered upstream."""
        return tuple(self._repository.load().email_inbox)

    def build_forward_template(self, case_id: str) -> ForwardTemplate:
        """Return the forward-to-coordinator template for a case."""
        return build_forward_template(self.get_case(case_id), self._coordinator)

    # Mutations ---------------------------------------------------------------
    def add_note(
        self,
        case_id: str,
        author_id: str | None,
        content: str | None,
        follow_up_date: str | None = None,
    ) -> CaseView:
        """Append a note, optionally rescheduling the follow-up, and save."""
        note = NoteRequest(
            author_id=author_id, content=content, follow_up_date=follow_up_date
        )
        validate_note(note)

        def apply(document: Document) -> CaseView:
            case = _require_case(document, case_id)
            self._timeline.add_note(case, note)
            return decorate_case(case, document)

        return self._mutate(apply)

    def close_case(self, case_id: str) -> CaseView:
        """Close a case and save."""

        def apply(document: Document) -> CaseView:
            case = _require_case(document, case_id)
            self._lifecycle.close(case)
            return decorate_case(case, document)

        return self._mutate(apply)

    def submit_intake(
        self,
        student_email: str | None,
        summary: str | None,
        lecturer_name: str | None = None,
    ) -> IntakeRecord:
        """Record a lecturer concern and save."""
        submission = IntakeSubmission(
            student_email=student_email, summary=summary, lecturer_name=lecturer_name
        )
        IntakeService.validate(submission)
        return self._mutate(
            lambda document: self._intake.submit(document, submission)
        )

    def _mutate(self, operation: Callable[[Document], T]) -> T:
        """Run load, one transition, then save as a single serialized step.

        Any error leaves the stored document untouched; the in-memory change is
        discarded and the caller must resubmit.
        """
        with self._write_lock:
            document = self._repository.load()
            result = operation(document)
            self._repository.save(document)
            LOGGER.debug("Saved document at revision %s", document.revision)
            return result


def _require_case(document: Document, case_id: str) -> Case:
    case = document.find_case(case_id)
    if case is None:
        raise NotFoundError("Case", case_id)
    return case


__all__ = ["CaseworkService"]
