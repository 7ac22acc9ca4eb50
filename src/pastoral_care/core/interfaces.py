"""Protocol interfaces and error types shared by every layer."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from .models import Document


class CaseworkError(RuntimeError):
    """Base class for failures surfaced by casework operations."""


class NotFoundError(CaseworkError, LookupError):
    """Raised when an identifier does not resolve to a stored entity."""

    def __init__(self, entity: str, identifier: str) -> None:
        """Record which kind of entity was missing and under which id."""
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.identifier = identifier


class ValidationError(CaseworkError, ValueError):
    """Raised when required input is missing or malformed; nothing is mutated."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        """Store the message and the offending field names."""
        super().__init__(message)
        self.fields = tuple(fields)


class StorageError(CaseworkError):
    """Raised when the document store cannot be read or written."""


class ConcurrentModificationError(StorageError):
    """Raised when a save targets a document revision that is no longer current."""

    def __init__(self, expected: int, actual: int | None) -> None:
        """Keep both revisions for diagnostics."""
        super().__init__(
            f"Document changed since it was loaded (expected revision {expected}, "
            f"found {actual})"
        )
        self.expected = expected
        self.actual = actual


class DocumentRepository(Protocol):
    """Whole-document persistence boundary.

    ``save`` is a compare-and-swap on ``Document.revision``: it succeeds only
    when the stored revision still matches the loaded one, then increments it.
    """

    def load(self) -> Document:
        """Return the full current state."""
        raise NotImplementedError

    def save(self, document: Document) -> None:
        """Replace the entire persisted state."""
        raise NotImplementedError

    def close(self) -> None:
        """Release any underlying resources."""
        raise NotImplementedError


__all__ = [
    "CaseworkError",
    "ConcurrentModificationError",
    "DocumentRepository",
    "NotFoundError",
    "StorageError",
    "ValidationError",
]
