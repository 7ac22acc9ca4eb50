"""Open to closed case transition."""

from __future__ import annotations

import logging

from pastoral_care.core.models import Case, CaseStatus

LOGGER = logging.getLogger(__name__)


class CaseLifecycle:
    """Apply status transitions to cases.

    ``closed`` is terminal. Closing an already closed case is allowed and
    re-applies the same effect.
    """

    def close(self, case: Case) -> Case:
        """Close ``case`` and clear both due fields so it leaves dated queues."""
        if case.status == CaseStatus.CLOSED:
            LOGGER.info("Case %s is already closed; clearing due dates again", case.id)
        case.status = CaseStatus.CLOSED.value
        case.follow_up_date = None
        case.next_action_due = None
        LOGGER.info("Closed case %s", case.id)
        return case


__all__ = ["CaseLifecycle"]
