"""JSON file repository holding the whole document in one file."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path

from ..core.config import StorageSettings
from ..core.interfaces import (
    ConcurrentModificationError,
    DocumentRepository,
    StorageError,
)
from ..core.models import Document
from .documents import DocumentFormatError, dumps_document, loads_document
from .seed import load_seed_document

LOGGER = logging.getLogger(__name__)


class JsonFileDocumentRepository(DocumentRepository):
    """Store the document as indented JSON, replaced atomically on save.

    The revision is written into the file. The check-then-replace in ``save``
    is serialised per repository instance only; cross-process writers get
    best-effort detection.
    """

    def __init__(self, settings: StorageSettings) -> None:
        """Bind to ``settings.json_path``; the file is created on first save."""
        self._settings = settings
        self._path = Path(settings.json_path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        """Location of the JSON document."""
        return self._path

    def load(self) -> Document:
        """Return the stored document, or the seed document when the file is absent."""
        with self._lock:
            return self._read()

    def save(self, document: Document) -> None:
        """Write ``document`` if the file still holds the revision it was loaded at."""
        expected = document.revision
        with self._lock:
            actual = self._read().revision if self._path.exists() else 0
            if actual != expected:
                LOGGER.warning(
                    "Rejected stale save to %s: expected revision %s, found %s",
                    self._path,
                    expected,
                    actual,
                )
                raise ConcurrentModificationError(expected, actual)
            document.revision = expected + 1
            try:
                self._write(dumps_document(document, include_revision=True))
            except OSError as exc:
                document.revision = expected
                LOGGER.error("Document save to %s failed: %s", self._path, exc)
                raise StorageError(f"Unable to write {self._path}: {exc}") from exc
        LOGGER.debug("Stored document revision %s", document.revision)

    def close(self) -> None:
        """Nothing to release; present for protocol compatibility."""

    def _read(self) -> Document:
        if not self._path.exists():
            return load_seed_document(self._settings.seed_path)
        try:
            return loads_document(self._path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError(f"Unable to read {self._path}: {exc}") from exc
        except DocumentFormatError as exc:
            raise StorageError(f"Stored document is corrupt: {exc}") from exc

    def _write(self, text: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(handle, "w", encoding="utf-8") as stream:
                stream.write(text)
            os.replace(temp_name, self._path)
        except OSError:
            Path(temp_name).unlink(missing_ok=True)
            raise


__all__ = ["JsonFileDocumentRepository"]
