"""Integration tests for the SQLite record store.

Updates:
  v0.2.0 - 2026-10-12 - Cover version lifecycle persistence and retired numbers.
  v0.1.0 - 2025-11-20 - Verify SQLite connection pragmas.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from core import VersionLifecycleManager
from core.repository import RepositoryNotFoundError, SQLitePromptStore
from core.repository.base import connect
from models.prompt_model import BumpKind, Prompt, PromptContent

if TYPE_CHECKING:
    from pathlib import Path

_DELETED_AT = datetime(2026, 4, 2, 10, 15, tzinfo=UTC)


def _store(tmp_path: Path) -> SQLitePromptStore:
    return SQLitePromptStore(tmp_path / "nested" / "versions.db")


def _seed(store: SQLitePromptStore) -> Prompt:
    prompt = Prompt.create(
        "Release notes",
        PromptContent(system_prompt="Summarise changes.", user_template="{diff}"),
        tags=["writing", "release"],
        created_by="ana",
    )
    return store.add_prompt(prompt)


def test_connect_configures_sqlite_pragmas(tmp_path: Path) -> None:
    """Connections enable foreign keys and WAL journaling."""
    db_path = tmp_path / "pragmas.db"
    with connect(db_path) as conn:
        foreign_keys = conn.execute("PRAGMA foreign_keys;").fetchone()[0]
        journal_mode = conn.execute("PRAGMA journal_mode;").fetchone()[0]
        synchronous = conn.execute("PRAGMA synchronous;").fetchone()[0]

    assert foreign_keys == 1
    assert journal_mode.lower() == "wal"
    assert synchronous in (1, 2)  # NORMAL maps to 1 on SQLite 3.44+


def test_add_and_reload_prompt_across_instances(tmp_path: Path) -> None:
    """Prompts and their initial version survive reopening the database."""
    prompt = _seed(_store(tmp_path))

    loaded = _store(tmp_path).get_prompt(prompt.id)

    assert loaded.title == "Release notes"
    assert loaded.tags == ["writing", "release"]
    assert loaded.current_version_id == prompt.current_version_id
    assert [version.version_number for version in loaded.versions] == ["1.0"]
    assert loaded.versions[0].content == prompt.content
    assert loaded.versions[0].created_by == "ana"
    assert loaded.created_at == prompt.created_at


def test_create_version_persists_and_mirrors(tmp_path: Path) -> None:
    """New versions are stored and become the prompt's current content."""
    store = _store(tmp_path)
    prompt = _seed(store)

    version = store.create_version(
        prompt.id,
        change_note="tone",
        bump_kind=BumpKind.MAJOR,
        content=PromptContent(system_prompt="Summarise changes politely."),
    )

    loaded = _store(tmp_path).get_prompt(prompt.id)
    assert version.version_number == "2.0"
    assert loaded.current_version_id == version.id
    assert loaded.system_prompt == "Summarise changes politely."
    assert {item.version_number for item in loaded.versions} == {"1.0", "2.0"}


def test_restore_and_soft_delete_round_trip(tmp_path: Path) -> None:
    """Restore switches the pointer; soft delete flags survive reloads."""
    store = _store(tmp_path)
    prompt = _seed(store)
    initial_id = prompt.current_version_id
    assert initial_id is not None
    second = store.create_version(prompt.id, change_note="b", bump_kind=BumpKind.MINOR)

    restored = store.restore_version(prompt.id, initial_id)
    store.soft_delete_version(prompt.id, second.id, deleted_at=_DELETED_AT)

    assert restored.current_version_id == initial_id
    loaded = store.get_prompt(prompt.id)
    deleted = loaded.find_version(second.id)
    assert deleted is not None
    assert deleted.deleted
    assert deleted.deleted_at == _DELETED_AT

    store.restore_soft_deleted_version(prompt.id, second.id)

    again = store.get_prompt(prompt.id).find_version(second.id)
    assert again is not None
    assert not again.deleted
    assert again.deleted_at is None


def test_hard_delete_retires_version_number(tmp_path: Path) -> None:
    """Purged numbers are recorded and skipped by later versions."""
    store = _store(tmp_path)
    prompt = _seed(store)
    initial_id = prompt.current_version_id
    assert initial_id is not None
    second = store.create_version(prompt.id, change_note="b", bump_kind=BumpKind.MINOR)
    store.restore_version(prompt.id, initial_id)

    store.hard_delete_version(prompt.id, second.id)
    third = store.create_version(prompt.id, change_note="c", bump_kind=BumpKind.MINOR)

    loaded = _store(tmp_path).get_prompt(prompt.id)
    assert loaded.find_version(second.id) is None
    assert loaded.retired_version_numbers == ["1.1"]
    assert third.version_number == "1.2"


def test_missing_records_raise_not_found(tmp_path: Path) -> None:
    """Unknown prompts and versions raise RepositoryNotFoundError."""
    store = _store(tmp_path)
    prompt = _seed(store)

    with pytest.raises(RepositoryNotFoundError, match="Prompt"):
        store.get_prompt(uuid.uuid4())
    with pytest.raises(RepositoryNotFoundError, match="Version"):
        store.soft_delete_version(prompt.id, uuid.uuid4(), deleted_at=_DELETED_AT)
    with pytest.raises(RepositoryNotFoundError, match="Version"):
        store.restore_version(prompt.id, uuid.uuid4())
    with pytest.raises(RepositoryNotFoundError):
        store.delete_prompt(uuid.uuid4())


def test_delete_prompt_cascades_versions(tmp_path: Path) -> None:
    """Deleting a prompt removes its version rows."""
    store = _store(tmp_path)
    prompt = _seed(store)
    store.create_version(prompt.id, change_note="b", bump_kind=BumpKind.MINOR)

    store.delete_prompt(prompt.id)

    with connect(tmp_path / "nested" / "versions.db") as conn:
        remaining = conn.execute("SELECT COUNT(*) FROM prompt_versions;").fetchone()[0]
    assert remaining == 0
    assert store.list_prompts() == []


def test_manager_over_sqlite_store(tmp_path: Path) -> None:
    """The lifecycle manager works unchanged against the SQLite store."""
    manager = VersionLifecycleManager(_store(tmp_path))
    prompt = manager.create_prompt("Persistent", PromptContent(system_prompt="one"))
    initial_id = prompt.current_version_id
    assert initial_id is not None
    manager.create_version(prompt.id, "two", content=PromptContent(system_prompt="two"))
    manager.delete_version(prompt.id, initial_id)

    history = VersionLifecycleManager(_store(tmp_path)).list_versions(prompt.id)

    assert [entry.version.version_number for entry in history.active] == ["1.1"]
    assert [entry.version.version_number for entry in history.deleted] == ["1.0"]
    assert history.prompt.system_prompt == "two"
