"""Tests for the JSON file document repository."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from pastoral_care.core.config import StorageSettings
from pastoral_care.core.interfaces import ConcurrentModificationError, StorageError
from pastoral_care.core.models import Case, Document
from pastoral_care.storage import JsonFileDocumentRepository, build_repository


def _settings(tmp_path: Path) -> StorageSettings:
    return StorageSettings(backend="json", json_path=tmp_path / "store" / "cases.json")


def test_build_repository_selects_backend(tmp_path: Path) -> None:
    repository = build_repository(_settings(tmp_path))

    assert isinstance(repository, JsonFileDocumentRepository)


def test_save_writes_revisioned_json(tmp_path: Path) -> None:
    repository = JsonFileDocumentRepository(_settings(tmp_path))
    document = Document(cases=[Case(id="case-1", student_id=None, advisor_id=None, owner_id=None)])

    repository.save(document)

    payload = json.loads(repository.path.read_text(encoding="utf-8"))
    assert payload["revision"] == 1
    assert payload["cases"][0]["id"] == "case-1"
    assert repository.load().revision == 1
    assert not list(repository.path.parent.glob("*.tmp"))


def test_stale_save_is_rejected(tmp_path: Path) -> None:
    repository = JsonFileDocumentRepository(_settings(tmp_path))
    repository.save(Document())
    first = repository.load()
    second = repository.load()

    repository.save(first)

    with pytest.raises(ConcurrentModificationError):
        repository.save(second)
    assert repository.load().revision == 2


def test_corrupt_file_raises_storage_error(tmp_path: Path) -> None:
    settings = _settings(tmp_path)
    settings.json_path.parent.mkdir(parents=True)
    settings.json_path.write_text("{broken", encoding="utf-8")

    with pytest.raises(StorageError):
        JsonFileDocumentRepository(settings).load()


def test_missing_file_loads_seed_and_is_created_on_save(tmp_path: Path) -> None:
    repository = JsonFileDocumentRepository(_settings(tmp_path))

    assert repository.path == tmp_path / "store" / "cases.json"
    assert not repository.path.exists()
    document = repository.load()
    assert document == Document()

    repository.save(document)
    assert repository.path.is_file()
