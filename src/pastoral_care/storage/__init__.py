"""Document persistence backends."""

from ..core.config import StorageSettings
from ..core.interfaces import DocumentRepository
from .json_file import JsonFileDocumentRepository
from .seed import bundled_seed_path, load_seed_document
from .sqlite import SqliteDocumentRepository


def build_repository(settings: StorageSettings) -> DocumentRepository:
    """Return the repository selected by ``settings.backend``."""
    if settings.backend == "json":
        return JsonFileDocumentRepository(settings)
    return SqliteDocumentRepository(settings)


__all__ = [
    "JsonFileDocumentRepository",
    "SqliteDocumentRepository",
    "build_repository",
    "bundled_seed_path",
    "load_seed_document",
]
