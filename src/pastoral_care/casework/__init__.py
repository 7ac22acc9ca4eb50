"""Case lifecycle and queue derivation."""

from .decorator import DocumentIndex, decorate_case, decorate_cases
from .intake import IntakeService, IntakeSubmission
from .lifecycle import CaseLifecycle
from .messaging import build_advisor_update_request, build_forward_template
from .queue import (
    DueStatus,
    QueueFilter,
    classify_due,
    filter_queue,
    project_queue,
    select_active_case,
    summarize_queue,
)
from .reasons import reason_label
from .service import CaseworkService
from .timeline import NoteRequest, TimelineManager

__all__ = [
    "CaseLifecycle",
    "CaseworkService",
    "DocumentIndex",
    "DueStatus",
    "IntakeService",
    "IntakeSubmission",
    "NoteRequest",
    "QueueFilter",
    "TimelineManager",
    "build_advisor_update_request",
    "build_forward_template",
    "classify_due",
    "decorate_case",
    "decorate_cases",
    "filter_queue",
    "project_queue",
    "reason_label",
    "select_active_case",
    "summarize_queue",
]
