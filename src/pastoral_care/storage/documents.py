"""Map between the persisted JSON document and domain models.

Keys use the camelCase layout of the stored document. Keys not modelled here
are carried in each record's ``extra`` mapping and written back unchanged.
Modelled keys missing from the stored record are noted in ``absent_keys`` and
stay missing on write while the field still holds its load-time default.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..casework.reasons import normalize_reasons
from ..core.models import (
    Case,
    CaseStatus,
    Document,
    EmailInboxItem,
    IntakeRecord,
    Student,
    TimelineEntry,
    User,
)

_DOCUMENT_KEYS = ("students", "users", "cases", "intakeQueue", "emailInbox", "revision")
_STUDENT_KEYS = ("id", "name", "email", "course", "stage")
_USER_KEYS = ("id", "name", "email", "role")
_ENTRY_KEYS = ("id", "type", "timestamp", "authorId", "summary")
_CASE_KEYS = (
    "id",
    "studentId",
    "advisorId",
    "ownerId",
    "status",
    "reasons",
    "overview",
    "emailAlias",
    "nextActionDue",
    "followUpDate",
    "timeline",
)
_INTAKE_KEYS = ("id", "studentEmail", "lecturerName", "summary", "submittedAt", "status")
_EMAIL_KEYS = ("id", "from", "subject", "preview", "timestamp", "status")
_EMPTY_VALUES = (None, "", [])


class DocumentFormatError(ValueError):
    """Raised when stored JSON does not describe a valid document."""


def document_from_dict(payload: Mapping[str, Any], *, revision: int | None = None) -> Document:
    """Build a :class:`Document` from its stored mapping."""
    if not isinstance(payload, Mapping):
        raise DocumentFormatError("Document root must be a JSON object")
    try:
        return Document(
            students=[_student(raw) for raw in _records(payload, "students")],
            users=[_user(raw) for raw in _records(payload, "users")],
            cases=[_case(raw) for raw in _records(payload, "cases")],
            intake_queue=[_intake(raw) for raw in _records(payload, "intakeQueue")],
            email_inbox=[_email(raw) for raw in _records(payload, "emailInbox")],
            revision=revision if revision is not None else int(payload.get("revision") or 0),
            extra=_extra(payload, _DOCUMENT_KEYS),
            absent_keys=_absent(payload, _DOCUMENT_KEYS),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DocumentFormatError(f"Malformed document: {exc}") from exc


def document_to_dict(document: Document, *, include_revision: bool = False) -> dict[str, Any]:
    """Return the stored mapping for ``document``."""
    payload: dict[str, Any] = {
        **document.extra,
        "students": [_student_dict(student) for student in document.students],
        "users": [_user_dict(user) for user in document.users],
        "cases": [_case_dict(case) for case in document.cases],
        "intakeQueue": [_intake_dict(record) for record in document.intake_queue],
        "emailInbox": [_email_dict(item) for item in document.email_inbox],
    }
    if include_revision:
        payload["revision"] = document.revision
    return _drop_absent(payload, document.absent_keys)


def dumps_document(document: Document, *, include_revision: bool = False) -> str:
    """Serialise ``document`` to indented JSON text."""
    return json.dumps(
        document_to_dict(document, include_revision=include_revision),
        indent=2,
        ensure_ascii=False,
    )


def loads_document(text: str, *, revision: int | None = None) -> Document:
    """Parse JSON text into a :class:`Document`."""
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DocumentFormatError(f"Document is not valid JSON: {exc}") from exc
    return document_from_dict(payload, revision=revision)


# Decoding -------------------------------------------------------------------
def _records(payload: Mapping[str, Any], key: str) -> list[Mapping[str, Any]]:
    raw = payload.get(key) or []
    if not isinstance(raw, list):
        raise DocumentFormatError(f"'{key}' must be a list")
    return raw


def _extra(raw: Mapping[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    return {key: value for key, value in raw.items() if key not in known}


def _absent(raw: Mapping[str, Any], known: tuple[str, ...]) -> frozenset[str]:
    return frozenset(key for key in known if key not in raw)


def _optional(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    return None if value is None else str(value)


def _student(raw: Mapping[str, Any]) -> Student:
    return Student(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        email=_optional(raw, "email"),
        course=_optional(raw, "course"),
        stage=_optional(raw, "stage"),
        extra=_extra(raw, _STUDENT_KEYS),
        absent_keys=_absent(raw, _STUDENT_KEYS),
    )


def _user(raw: Mapping[str, Any]) -> User:
    return User(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        email=_optional(raw, "email"),
        role=_optional(raw, "role"),
        extra=_extra(raw, _USER_KEYS),
        absent_keys=_absent(raw, _USER_KEYS),
    )


def _entry(raw: Mapping[str, Any]) -> TimelineEntry:
    return TimelineEntry(
        id=str(raw["id"]),
        type=str(raw.get("type") or "note"),
        timestamp=str(raw.get("timestamp") or ""),
        author_id=str(raw.get("authorId") or ""),
        summary=str(raw.get("summary") or ""),
        extra=_extra(raw, _ENTRY_KEYS),
        absent_keys=_absent(raw, _ENTRY_KEYS),
    )


def _case(raw: Mapping[str, Any]) -> Case:
    return Case(
        id=str(raw["id"]),
        student_id=_optional(raw, "studentId"),
        advisor_id=_optional(raw, "advisorId"),
        owner_id=_optional(raw, "ownerId"),
        status=str(raw.get("status") or CaseStatus.OPEN.value),
        reasons=normalize_reasons(raw.get("reasons")),
        overview=str(raw.get("overview") or ""),
        email_alias=_optional(raw, "emailAlias"),
        next_action_due=_optional(raw, "nextActionDue"),
        follow_up_date=_optional(raw, "followUpDate"),
        timeline=[_entry(entry) for entry in _records(raw, "timeline")],
        extra=_extra(raw, _CASE_KEYS),
        absent_keys=_absent(raw, _CASE_KEYS),
    )


def _intake(raw: Mapping[str, Any]) -> IntakeRecord:
    return IntakeRecord(
        id=str(raw["id"]),
        student_email=str(raw.get("studentEmail") or ""),
        lecturer_name=str(raw.get("lecturerName") or ""),
        summary=str(raw.get("summary") or ""),
        submitted_at=str(raw.get("submittedAt") or ""),
        status=str(raw.get("status") or "new"),
        extra=_extra(raw, _INTAKE_KEYS),
        absent_keys=_absent(raw, _INTAKE_KEYS),
    )


def _email(raw: Mapping[str, Any]) -> EmailInboxItem:
    return EmailInboxItem(
        id=str(raw["id"]),
        sender=_optional(raw, "from"),
        subject=_optional(raw, "subject"),
        preview=_optional(raw, "preview"),
        timestamp=_optional(raw, "timestamp"),
        status=_optional(raw, "status"),
        extra=_extra(raw, _EMAIL_KEYS),
        absent_keys=_absent(raw, _EMAIL_KEYS),
    )


# Encoding -------------------------------------------------------------------
def _drop_absent(
    payload: dict[str, Any],
    absent_keys: frozenset[str],
    defaults: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Remove keys missing on load whose value is still empty or at its load default."""
    unchanged = defaults or {}
    for key in absent_keys:
        value = payload.get(key)
        if value in _EMPTY_VALUES or (key in unchanged and value == unchanged[key]):
            payload.pop(key, None)
    return payload


def _student_dict(student: Student) -> dict[str, Any]:
    payload = {
        **student.extra,
        "id": student.id,
        "name": student.name,
        "email": student.email,
        "course": student.course,
        "stage": student.stage,
    }
    return _drop_absent(payload, student.absent_keys)


def _user_dict(user: User) -> dict[str, Any]:
    payload = {
        **user.extra,
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
    }
    return _drop_absent(payload, user.absent_keys)


def _entry_dict(entry: TimelineEntry) -> dict[str, Any]:
    payload = {
        **entry.extra,
        "id": entry.id,
        "type": entry.type,
        "timestamp": entry.timestamp,
        "authorId": entry.author_id,
        "summary": entry.summary,
    }
    return _drop_absent(payload, entry.absent_keys, {"type": "note"})


def _case_dict(case: Case) -> dict[str, Any]:
    payload = {
        **case.extra,
        "id": case.id,
        "studentId": case.student_id,
        "advisorId": case.advisor_id,
        "ownerId": case.owner_id,
        "status": case.status,
        "reasons": list(case.reasons),
        "overview": case.overview,
        "emailAlias": case.email_alias,
        "nextActionDue": case.next_action_due,
        "followUpDate": case.follow_up_date,
        "timeline": [_entry_dict(entry) for entry in case.timeline],
    }
    return _drop_absent(payload, case.absent_keys, {"status": CaseStatus.OPEN.value})


def _intake_dict(record: IntakeRecord) -> dict[str, Any]:
    payload = {
        **record.extra,
        "id": record.id,
        "studentEmail": record.student_email,
        "lecturerName": record.lecturer_name,
        "summary": record.summary,
        "submittedAt": record.submitted_at,
        "status": record.status,
    }
    return _drop_absent(payload, record.absent_keys, {"status": "new"})


def _email_dict(item: EmailInboxItem) -> dict[str, Any]:
    payload = {
        **item.extra,
        "id": item.id,
        "from": item.sender,
        "subject": item.subject,
        "preview": item.preview,
        "timestamp": item.timestamp,
        "status": item.status,
    }
    return _drop_absent(payload, item.absent_keys)


__all__ = [
    "DocumentFormatError",
    "document_from_dict",
    "document_to_dict",
    "dumps_document",
    "loads_document",
]
