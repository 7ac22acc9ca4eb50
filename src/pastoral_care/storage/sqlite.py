"""SQLite-backed whole-document repository."""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from types import TracebackType

from ..core.config import StorageSettings
from ..core.datetime_utils import utc_timestamp
from ..core.interfaces import (
    ConcurrentModificationError,
    DocumentRepository,
    StorageError,
)
from ..core.models import Document
from .documents import DocumentFormatError, dumps_document, loads_document
from .seed import load_seed_document

LOGGER = logging.getLogger(__name__)

_DOCUMENT_ROW_ID = 1


class SqliteDocumentRepository(DocumentRepository):
    """Persist the document as one JSON row guarded by a revision counter."""

    def __init__(self, settings: StorageSettings) -> None:
        """Open the database and apply migrations."""
        self._settings = settings
        self._lock = threading.Lock()
        db_path = Path(settings.db_path)
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(db_path, check_same_thread=False)
            self._connection.row_factory = sqlite3.Row
            self._apply_migrations()
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Unable to open document store {db_path}: {exc}") from exc

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> SqliteDocumentRepository:
        """Enter context manager scope."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Ensure the connection is closed when exiting context manager."""
        self.close()

    # DocumentRepository API --------------------------------------------------
    def load(self) -> Document:
        """Return the stored document, or the seed document when none is stored."""
        with self._lock:
            try:
                row = self._connection.execute(
                    "SELECT body, revision FROM documents WHERE id = ?",
                    (_DOCUMENT_ROW_ID,),
                ).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"Unable to read document: {exc}") from exc
        if row is None:
            LOGGER.debug("No stored document; starting from seed")
            return load_seed_document(self._settings.seed_path)
        try:
            return loads_document(row["body"], revision=int(row["revision"]))
        except DocumentFormatError as exc:
            raise StorageError(f"Stored document is corrupt: {exc}") from exc

    def save(self, document: Document) -> None:
        """Replace the stored document if its revision is still current."""
        body = dumps_document(document)
        expected = document.revision
        with self._lock:
            try:
                with self._connection:
                    if expected == 0:
                        cursor = self._connection.execute(
                            """
                            INSERT INTO documents (id, body, revision, updated_at)
                            VALUES (?, ?, 1, ?)
                            ON CONFLICT(id) DO NOTHING
                            """,
                            (_DOCUMENT_ROW_ID, body, utc_timestamp()),
                        )
                    else:
                        cursor = self._connection.execute(
                            """
                            UPDATE documents
                            SET body = ?, revision = revision + 1, updated_at = ?
                            WHERE id = ? AND revision = ?
                            """,
                            (body, utc_timestamp(), _DOCUMENT_ROW_ID, expected),
                        )
                    if cursor.rowcount == 0:
                        actual = self._current_revision()
                        LOGGER.warning(
                            "Rejected stale save: expected revision %s, found %s",
                            expected,
                            actual,
                        )
                        raise ConcurrentModificationError(expected, actual)
            except sqlite3.Error as exc:
                LOGGER.error("Document save failed: %s", exc)
                raise StorageError(f"Unable to write document: {exc}") from exc
        document.revision = expected + 1
        LOGGER.debug("Stored document revision %s", document.revision)

    def close(self) -> None:
        """Close the underlying SQLite connection."""
        self._connection.close()

    # Internal helpers --------------------------------------------------------
    def _current_revision(self) -> int | None:
        row = self._connection.execute(
            "SELECT revision FROM documents WHERE id = ?", (_DOCUMENT_ROW_ID,)
        ).fetchone()
        return None if row is None else int(row["revision"])

    def _apply_migrations(self) -> None:
        schema_dir = Path(__file__).resolve().parent / "schema"
        for migration in sorted(schema_dir.glob("*.sql")):
            LOGGER.debug("Applying migration %s", migration.name)
            with self._connection:
                self._connection.executescript(
                    migration.read_text(encoding="utf-8")
                )


__all__ = ["SqliteDocumentRepository"]
