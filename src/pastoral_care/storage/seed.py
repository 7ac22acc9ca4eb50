"""Initial documents for empty stores."""

from __future__ import annotations

import logging
from importlib import resources
from pathlib import Path

from ..core.interfaces import StorageError
from ..core.models import Document
from .documents import DocumentFormatError, loads_document

LOGGER = logging.getLogger(__name__)


def bundled_seed_path() -> Path:
    """Return the path of the sample document shipped with the package."""
    return Path(str(resources.files("pastoral_care").joinpath("data", "seed.json")))


def load_seed_document(seed_path: Path | str | None) -> Document:
    """Read a seed document at revision 0; ``None`` gives an empty document."""
    if seed_path is None:
        return Document()
    path = Path(seed_path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Unable to read seed document {path}: {exc}") from exc
    try:
        document = loads_document(text, revision=0)
    except DocumentFormatError as exc:
        raise StorageError(f"Seed document {path} is invalid: {exc}") from exc
    LOGGER.info("Loaded seed document from %s (%d cases)", path, len(document.cases))
    return document


__all__ = ["bundled_seed_path", "load_seed_document"]
