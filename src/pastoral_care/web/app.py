"""FastAPI application exposing the casework JSON API."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, Request, status as http_status
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from pydantic import BaseModel, ConfigDict, Field

from pastoral_care.casework import (
    CaseworkService,
    QueueFilter,
    build_advisor_update_request,
    classify_due,
    select_active_case,
)
from pastoral_care.casework.reasons import reason_catalogue, reason_label
from pastoral_care.core import AppSettings, ServiceContainer, load_app_settings
from pastoral_care.core.container import REPOSITORY_KEY, SERVICE_KEY
from pastoral_care.core.datetime_utils import local_now
from pastoral_care.core.interfaces import (
    ConcurrentModificationError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from pastoral_care.core.models import (
    CaseView,
    EmailInboxItem,
    ForwardTemplate,
    IntakeRecord,
    QueueItem,
    QueueSummary,
    Student,
    User,
)
from pastoral_care.storage import build_repository

LOGGER = logging.getLogger(__name__)


class NoteBody(BaseModel):
    """Payload for ``POST /api/cases/{case_id}/notes``."""

    model_config = ConfigDict(populate_by_name=True)

    content: str | None = None
    author_id: str | None = Field(default=None, alias="authorId")
    follow_up_date: str | None = Field(default=None, alias="followUpDate")


class IntakeBody(BaseModel):
    """Payload for ``POST /api/intake``."""

    model_config = ConfigDict(populate_by_name=True)

    student_email: str | None = Field(default=None, alias="studentEmail")
    lecturer_name: str | None = Field(default=None, alias="lecturerName")
    summary: str | None = None


def create_app(settings: AppSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app_settings = settings or load_app_settings()
    app = FastAPI(title="Pastoral Care Casework")
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    container = ServiceContainer()
    container.register(
        REPOSITORY_KEY, lambda _: build_repository(app_settings.storage)
    )
    container.register(
        SERVICE_KEY,
        lambda c: CaseworkService(
            c.resolve(REPOSITORY_KEY), coordinator=app_settings.coordinator
        ),
    )
    app.state.container = container
    default_filter = QueueFilter(app_settings.queue.default_filter)

    def get_service() -> CaseworkService:
        return container.resolve(SERVICE_KEY)

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        """Release the document store on shutdown."""
        container.close()
        LOGGER.info("Document repository closed")

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=http_status.HTTP_404_NOT_FOUND, content={"error": str(exc)}
        )

    @app.exception_handler(ValidationError)
    async def validation_handler(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=http_status.HTTP_400_BAD_REQUEST,
            content={"error": str(exc), "fields": [_camel(f) for f in exc.fields]},
        )

    @app.exception_handler(ConcurrentModificationError)
    async def conflict_handler(
        request: Request, exc: ConcurrentModificationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=http_status.HTTP_409_CONFLICT,
            content={"error": "The case data changed; reload and try again."},
        )

    @app.exception_handler(StorageError)
    async def storage_handler(request: Request, exc: StorageError) -> JSONResponse:
        LOGGER.error("Storage failure on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Case storage is unavailable."},
        )

    @app.get("/api/dashboards/triage")
    async def triage_dashboard(
        request: Request,
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        mode = _normalize_queue_filter(request.query_params.get("filter"), default_filter)
        now = local_now()
        dashboard = await asyncio.to_thread(service.get_triage_queue, mode, now=now)
        return {
            "filter": dashboard.filter,
            "activeCaseId": select_active_case(
                dashboard.queue, request.query_params.get("active")
            ),
            "queue": [
                _serialize_queue_item(item, now, app_settings)
                for item in dashboard.queue
            ],
            "summary": _serialize_summary(dashboard.summary),
            "cases": [_serialize_case(view) for view in dashboard.cases],
            "intakeQueue": [_serialize_intake(r) for r in dashboard.intake_queue],
            "unmatchedEmails": [
                _serialize_email(item) for item in dashboard.unmatched_emails
            ],
            "reasonLabels": reason_catalogue(),
        }

    @app.get("/api/dashboards/advisor/{advisor_id}")
    async def advisor_dashboard(
        advisor_id: str,
        request: Request,
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        mode = _normalize_queue_filter(request.query_params.get("filter"), default_filter)
        now = local_now()
        dashboard = await asyncio.to_thread(
            service.get_advisor_queue, advisor_id, mode, now=now
        )
        return {
            "advisorId": dashboard.advisor_id,
            "filter": dashboard.filter,
            "activeCaseId": select_active_case(
                dashboard.queue, request.query_params.get("active")
            ),
            "queue": [
                _serialize_queue_item(item, now, app_settings)
                for item in dashboard.queue
            ],
            "summary": _serialize_summary(dashboard.summary),
            "cases": [_serialize_case(view) for view in dashboard.cases],
            "reasonLabels": reason_catalogue(),
        }

    @app.get("/api/cases/{case_id}")
    async def case_detail(
        case_id: str,
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        view = await asyncio.to_thread(service.get_case, case_id)
        return _serialize_case(view)

    @app.get("/api/cases/{case_id}/forward-template")
    async def forward_template(
        case_id: str,
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        """Email template an advisor uses to hand a case back to the coordinator."""
        template = await asyncio.to_thread(service.build_forward_template, case_id)
        return _serialize_template(template)

    @app.post("/api/cases/{case_id}/notes", status_code=http_status.HTTP_201_CREATED)
    async def add_note(
        case_id: str,
        body: NoteBody | None = None,
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        payload = body or NoteBody()
        view = await asyncio.to_thread(
            service.add_note,
            case_id,
            author_id=payload.author_id,
            content=payload.content,
            follow_up_date=payload.follow_up_date,
        )
        return _serialize_case(view)

    @app.post("/api/cases/{case_id}/close")
    async def close_case(
        case_id: str,
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        view = await asyncio.to_thread(service.close_case, case_id)
        return _serialize_case(view)

    @app.post("/api/intake", status_code=http_status.HTTP_201_CREATED)
    async def submit_intake(
        body: IntakeBody | None = None,
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> dict[str, Any]:
        payload = body or IntakeBody()
        record = await asyncio.to_thread(
            service.submit_intake,
            student_email=payload.student_email,
            summary=payload.summary,
            lecturer_name=payload.lecturer_name,
        )
        return _serialize_intake(record)

    @app.get("/api/email/inbox")
    async def email_inbox(
        service: CaseworkService = Depends(get_service),  # noqa: B008
    ) -> list[dict[str, Any]]:
        items = await asyncio.to_thread(service.list_email_inbox)
        return [_serialize_email(item) for item in items]

    _ensure_route_names(app)
    return app


def _ensure_route_names(app: FastAPI) -> None:
    """Assign names to routes if absent for better URL reversing."""
    for route in app.router.routes:
        if isinstance(route, APIRoute) and route.name is None:
            route.name = route.path_format.replace("/", ":") or "root"


def _normalize_queue_filter(raw: str | None, default: QueueFilter) -> QueueFilter:
    value = (raw or "").strip().lower()
    if value not in {member.value for member in QueueFilter}:
        return default
    return QueueFilter(value)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _serialize_reasons(reasons: Sequence[str]) -> list[dict[str, str]]:
    return [{"code": code, "label": reason_label(code)} for code in reasons]


def _serialize_queue_item(
    item: QueueItem, now: datetime, settings: AppSettings
) -> dict[str, Any]:
    request = build_advisor_update_request(item, settings.coordinator)
    return {
        "id": item.id,
        "studentName": item.student_name,
        "nextActionDue": item.next_action_due,
        "dueStatus": classify_due(item.next_action_due, now=now).value,
        "reasons": list(item.reasons),
        "reasonDetails": _serialize_reasons(item.reasons),
        "overview": item.overview,
        "advisorName": item.advisor_name,
        "advisorEmail": item.advisor_email,
        "ownerEmail": item.owner_email,
        "emailAlias": item.email_alias,
        "advisorUpdateRequest": (
            _serialize_template(request) if request is not None else None
        ),
    }


def _serialize_summary(summary: QueueSummary) -> dict[str, int]:
    return {
        "total": summary.total,
        "dueToday": summary.due_today,
        "overdue": summary.overdue,
    }


def _serialize_student(student: Student | None) -> dict[str, Any] | None:
    if student is None:
        return None
    return {
        "id": student.id,
        "name": student.name,
        "course": student.course,
        "stage": student.stage,
        "email": student.email,
    }


def _serialize_user(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "role": user.role, "email": user.email}


def _serialize_case(view: CaseView) -> dict[str, Any]:
    return {
        "id": view.id,
        "status": view.status,
        "nextActionDue": view.next_action_due,
        "followUpDate": view.follow_up_date,
        "reasons": list(view.reasons),
        "reasonDetails": _serialize_reasons(view.reasons),
        "overview": view.overview,
        "emailAlias": view.email_alias,
        "student": _serialize_student(view.student),
        "advisor": _serialize_user(view.advisor),
        "owner": _serialize_user(view.owner),
        "timeline": [
            {
                "id": entry.id,
                "type": entry.type,
                "title": entry.title,
                "timestamp": entry.timestamp,
                "authorId": entry.author_id,
                "authorName": entry.author_name,
                "summary": entry.summary,
            }
            for entry in view.timeline
        ],
    }


def _serialize_intake(record: IntakeRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "studentEmail": record.student_email,
        "lecturerName": record.lecturer_name,
        "summary": record.summary,
        "submittedAt": record.submitted_at,
        "status": record.status,
    }


def _serialize_email(item: EmailInboxItem) -> dict[str, Any]:
    return {
        **item.extra,
        "id": item.id,
        "from": item.sender,
        "subject": item.subject,
        "preview": item.preview,
        "timestamp": item.timestamp,
        "status": item.status,
    }


def _serialize_template(template: ForwardTemplate) -> dict[str, Any]:
    return {
        "to": template.to,
        "cc": list(template.cc),
        "subject": template.subject,
        "body": template.body,
    }


__all__ = ["IntakeBody", "NoteBody", "create_app"]
