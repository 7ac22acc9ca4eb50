"""Tests for the case lifecycle."""

from __future__ import annotations

from pastoral_care.casework.lifecycle import CaseLifecycle
from pastoral_care.core.models import Case


def _case(status: str = "open") -> Case:
    return Case(
        id="case-1",
        student_id="stu-1",
        advisor_id="adv-lee",
        owner_id=None,
        status=status,
        next_action_due="2024-05-20",
        follow_up_date="2024-05-20",
    )


def test_close_clears_due_dates() -> None:
    case = CaseLifecycle().close(_case())

    assert case.status == "closed"
    assert case.next_action_due is None
    assert case.follow_up_date is None


def test_closing_a_closed_case_reapplies_effect() -> None:
    case = _case(status="closed")
    case.next_action_due = "2024-07-01"

    CaseLifecycle().close(case)
    CaseLifecycle().close(case)

    assert case.status == "closed"
    assert case.next_action_due is None
