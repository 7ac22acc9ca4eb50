"""Reason code catalogue and display labels."""

from __future__ import annotations

from collections.abc import Iterable

from pastoral_care.core.models import ReasonCode

_REASON_LABELS = {
    ReasonCode.MISSED_SUBMISSION: "Missed submission",
    ReasonCode.UNANSWERED_MESSAGE: "Awaiting reply",
    ReasonCode.EC_DEADLINE: "EC evidence due",
    ReasonCode.NO_ACTIVITY_14D: "No activity (14d)",
}


def reason_label(code: str) -> str:
    """Return the display label for ``code``, or the code itself when unknown."""
    return _REASON_LABELS.get(code, code)


def normalize_reasons(raw: Iterable[object] | None) -> tuple[str, ...]:
    """Coerce stored reasons into a tuple of strings, keeping unknown codes."""
    if not raw:
        return ()
    return tuple(str(code) for code in raw if code is not None and str(code))


def reason_catalogue() -> dict[str, str]:
    """Return every known reason code mapped to its label."""
    return {code.value: label for code, label in _REASON_LABELS.items()}


__all__ = ["normalize_reasons", "reason_catalogue", "reason_label"]
