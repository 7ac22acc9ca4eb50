"""Integration tests for the casework HTTP API."""

from __future__ import annotations

import asyncio
from datetime import date, timedelta
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from pastoral_care.casework import CaseworkService
from pastoral_care.core.config import AppSettings, StorageSettings
from pastoral_care.core.container import REPOSITORY_KEY, SERVICE_KEY
from pastoral_care.core.models import (
    Case,
    CaseView,
    Document,
    EmailInboxItem,
    Student,
    User,
)
from pastoral_care.storage import SqliteDocumentRepository
from pastoral_care.web import create_app


def _seed(db_path: Path) -> None:
    today = date.today()
    document = Document(
        students=[
            Student(id="stu-1", name="Aoife Murphy", course="BSc Computer Science", stage="Stage 2"),
            Student(id="stu-2", name="Daniel Okafor"),
        ],
        users=[
            User(id="coordinator", name="Coordinator", email="support@example.ac.uk"),
            User(id="adv-lee", name="Dr Lee", email="lee@example.ac.uk"),
        ],
        cases=[
            Case(
                id="case-later",
                student_id="stu-1",
                advisor_id="adv-lee",
                owner_id="coordinator",
                reasons=("missed_submission", "custom_flag"),
                next_action_due=(today + timedelta(days=3)).isoformat(),
            ),
            Case(
                id="case-today",
                student_id="stu-2",
                advisor_id="adv-lee",
                owner_id="coordinator",
                next_action_due=today.isoformat(),
                email_alias="case-today@example.ac.uk",
            ),
            Case(
                id="case-late",
                student_id="stu-2",
                advisor_id=None,
                owner_id=None,
                next_action_due=(today - timedelta(days=2)).isoformat(),
            ),
        ],
        email_inbox=[
            EmailInboxItem(
                id="mail-1",
                sender="parent@example.com",
                subject="Concern",
                preview="...",
                timestamp="2024-05-17T07:55:00Z",
                status="unmatched",
                extra={"caseId": None},
            )
        ],
    )
    with SqliteDocumentRepository(StorageSettings(db_path=db_path)) as repository:
        repository.save(document)


@pytest.fixture()
def client(tmp_path: Path) -> TestClient:
    db_path = tmp_path / "cases.db"
    _seed(db_path)
    settings = AppSettings(storage=StorageSettings(db_path=db_path))
    return TestClient(create_app(settings))


def test_triage_dashboard_defaults_to_today(client: TestClient) -> None:
    response = client.get("/api/dashboards/triage")

    assert response.status_code == 200
    payload = response.json()
    assert payload["filter"] == "today"
    assert [item["id"] for item in payload["queue"]] == ["case-today"]
    assert payload["activeCaseId"] == "case-today"
    assert payload["summary"] == {"total": 3, "dueToday": 1, "overdue": 1}
    assert [item["id"] for item in payload["unmatchedEmails"]] == ["mail-1"]
    assert payload["reasonLabels"]["ec_deadline"] == "EC evidence due"
    item = payload["queue"][0]
    assert item["dueStatus"] == "today"
    assert item["advisorUpdateRequest"]["to"] == "lee@example.ac.uk"


def test_triage_dashboard_all_filter_and_unknown_filter(client: TestClient) -> None:
    everything = client.get("/api/dashboards/triage", params={"filter": "ALL", "active": "case-later"})
    fallback = client.get("/api/dashboards/triage", params={"filter": "someday"})

    payload = everything.json()
    assert [item["id"] for item in payload["queue"]] == ["case-late", "case-today", "case-later"]
    assert payload["activeCaseId"] == "case-later"
    later = payload["queue"][2]
    assert later["reasonDetails"] == [
        {"code": "missed_submission", "label": "Missed submission"},
        {"code": "custom_flag", "label": "custom_flag"},
    ]
    assert payload["queue"][0]["advisorUpdateRequest"] is None
    assert fallback.json()["filter"] == "today"


def test_advisor_dashboard_is_scoped(client: TestClient) -> None:
    response = client.get("/api/dashboards/advisor/adv-lee", params={"filter": "all"})

    payload = response.json()
    assert payload["advisorId"] == "adv-lee"
    assert [item["id"] for item in payload["queue"]] == ["case-today", "case-later"]
    assert "unmatchedEmails" not in payload


def test_case_detail_and_missing_case(client: TestClient) -> None:
    found = client.get("/api/cases/case-later")
    missing = client.get("/api/cases/case-nope")

    assert found.status_code == 200
    assert found.json()["student"]["course"] == "BSc Computer Science"
    assert found.json()["advisor"]["name"] == "Dr Lee"
    assert missing.status_code == 404
    assert missing.json() == {"error": "Case not found"}


def test_add_note_created_and_visible(client: TestClient) -> None:
    follow_up = (date.today() + timedelta(days=7)).isoformat()
    response = client.post(
        "/api/cases/case-today/notes",
        json={"content": "Called student", "authorId": "adv-lee", "followUpDate": follow_up},
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["nextActionDue"] == follow_up
    assert payload["followUpDate"] == follow_up
    assert payload["timeline"][0]["summary"] == "Called student"
    assert payload["timeline"][0]["authorName"] == "Dr Lee"
    assert payload["timeline"][0]["title"] == "Note"

    today = client.get("/api/dashboards/triage").json()
    assert today["queue"] == []


def test_add_note_validation_errors(client: TestClient) -> None:
    missing = client.post("/api/cases/case-today/notes", json={"content": ""})
    bad_date = client.post(
        "/api/cases/case-today/notes",
        json={"content": "Hi", "authorId": "adv-lee", "followUpDate": "next week"},
    )
    unknown_case = client.post(
        "/api/cases/case-nope/notes", json={"content": "Hi", "authorId": "adv-lee"}
    )

    assert missing.status_code == 400
    assert missing.json()["fields"] == ["content", "authorId"]
    assert bad_date.status_code == 400
    assert bad_date.json()["fields"] == ["followUpDate"]
    assert unknown_case.status_code == 404


def test_close_case_removes_it_from_dated_queues(client: TestClient) -> None:
    response = client.post("/api/cases/case-today/close")

    assert response.status_code == 200
    assert response.json()["status"] == "closed"
    assert response.json()["nextActionDue"] is None
    assert client.post("/api/cases/case-today/close").status_code == 200
    assert client.get("/api/dashboards/triage").json()["queue"] == []


def test_submit_intake(client: TestClient) -> None:
    created = client.post(
        "/api/intake", json={"studentEmail": "s@example.ac.uk", "summary": "Absent from labs"}
    )
    rejected = client.post("/api/intake", json={"studentEmail": "  ", "summary": "Absent"})

    assert created.status_code == 201
    assert created.json()["lecturerName"] == "Unknown lecturer"
    assert created.json()["id"].startswith("intake-")
    assert rejected.status_code == 400
    assert rejected.json()["fields"] == ["studentEmail"]
    intake = client.get("/api/dashboards/triage").json()["intakeQueue"]
    assert [record["studentEmail"] for record in intake] == ["s@example.ac.uk"]


def test_email_inbox_and_forward_template(client: TestClient) -> None:
    inbox = client.get("/api/email/inbox").json()
    template = client.get("/api/cases/case-today/forward-template").json()

    assert inbox == [
        {
            "caseId": None,
            "id": "mail-1",
            "from": "parent@example.com",
            "subject": "Concern",
            "preview": "...",
            "timestamp": "2024-05-17T07:55:00Z",
            "status": "unmatched",
        }
    ]
    assert template["to"] == "support@example.ac.uk"
    assert template["cc"] == ["lee@example.ac.uk"]
    assert template["body"].endswith("Case alias: case-today@example.ac.uk")


def test_service_calls_run_off_the_event_loop(tmp_path: Path) -> None:
    db_path = tmp_path / "cases.db"
    _seed(db_path)
    app = create_app(AppSettings(storage=StorageSettings(db_path=db_path)))
    loop_running: list[bool] = []

    class RecordingService(CaseworkService):
        def close_case(self, case_id: str) -> CaseView:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                loop_running.append(False)
            else:
                loop_running.append(True)
            return super().close_case(case_id)

    container = app.state.container
    container.register(
        SERVICE_KEY, lambda c: RecordingService(c.resolve(REPOSITORY_KEY))
    )
    client = TestClient(app)

    assert client.post("/api/cases/case-today/close").status_code == 200
    assert client.post("/api/cases/case-later/close").status_code == 200
    assert loop_running == [False, False]
    assert container.resolve(SERVICE_KEY) is container.resolve(SERVICE_KEY)
