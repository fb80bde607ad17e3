"""Shared repository helpers, the record store protocol, and error hierarchy.

Updates:
  v0.12.1 - 2026-10-19 - Drop the unused optional datetime parser.
  v0.12.0 - 2026-10-06 - Define the PromptRecordStore protocol shared by all backends.
  v0.11.0 - 2025-12-04 - Extract logger, helpers, and exceptions from monolith.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, Protocol, cast

from models.prompt_model import PromptVersion

from ..version_numbers import allocate_version_number

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from models.prompt_model import BumpKind, Prompt, PromptContent

logger = logging.getLogger("prompt_versions.repository")


class RepositoryError(Exception):
    """Base exception for repository failures."""


class RepositoryNotFoundError(RepositoryError):
    """Raised when a requested record cannot be located."""


class PromptRecordStore(Protocol):
    """Persistence collaborator consumed by the version lifecycle manager.

    Implementations raise :class:`RepositoryNotFoundError` for unknown prompt
    or version identifiers and :class:`RepositoryError` for any other failure.
    """

    def list_prompts(self) -> list[Prompt]:
        """Return every stored prompt aggregate."""
        ...

    def get_prompt(self, prompt_id: uuid.UUID) -> Prompt:
        """Return the prompt aggregate with its full version set."""
        ...

    def add_prompt(self, prompt: Prompt) -> Prompt:
        """Persist a newly created prompt together with its initial version."""
        ...

    def delete_prompt(self, prompt_id: uuid.UUID) -> None:
        """Remove a prompt and all of its versions."""
        ...

    def create_version(
        self,
        prompt_id: uuid.UUID,
        *,
        change_note: str,
        bump_kind: BumpKind,
        created_by: str | None = None,
        content: PromptContent | None = None,
    ) -> PromptVersion:
        """Snapshot the prompt content into a new current version."""
        ...

    def restore_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Point the prompt at *version_id* and mirror its content."""
        ...

    def soft_delete_version(
        self,
        prompt_id: uuid.UUID,
        version_id: uuid.UUID,
        *,
        deleted_at: datetime,
    ) -> None:
        """Flag a version as deleted while keeping it in history."""
        ...

    def restore_soft_deleted_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Clear the soft-delete flags on a version."""
        ...

    def hard_delete_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Remove a version from history permanently."""
        ...


def snapshot_next_version(
    prompt: Prompt,
    *,
    change_note: str,
    bump_kind: BumpKind,
    created_by: str | None = None,
    content: PromptContent | None = None,
    now: datetime | None = None,
) -> PromptVersion:
    """Build the version a local store appends for ``create_version``.

    Numbering is relative to the current version; numbers already held by live
    or retired versions are skipped.
    """
    version_number = allocate_version_number(
        prompt.versions,
        prompt.current_version_id,
        bump_kind,
        reserved=prompt.retired_version_numbers,
    )
    return PromptVersion.snapshot(
        prompt.id,
        content or prompt.content,
        version_number=version_number,
        change_note=change_note,
        created_by=created_by,
        created_at=now or datetime.now(UTC),
    )


def ensure_directory(path: Path) -> None:
    """Ensure the directory for the SQLite database exists."""
    path.parent.mkdir(parents=True, exist_ok=True)


def connect(db_path: Path) -> sqlite3.Connection:
    """Return a configured SQLite connection."""
    conn = sqlite3.connect(str(db_path), detect_types=sqlite3.PARSE_DECLTYPES)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA synchronous = NORMAL;")
    return conn


def stringify_uuid(value: uuid.UUID | str) -> str:
    """Return a canonical UUID string for storage."""
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(uuid.UUID(str(value)))


def json_dumps(value: Any | None) -> str | None:
    """Serialize arbitrary values to JSON strings (or None)."""
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def json_loads_list(value: str | None) -> list[str]:
    """Deserialize JSON-encoded lists stored in SQLite into Python lists."""
    if value is None:
        return []
    if value in ("", "null"):
        return []
    try:
        parsed: object = json.loads(value)
    except json.JSONDecodeError:
        return [str(value)]  # degraded fallback
    if isinstance(parsed, list):
        entries = cast("Sequence[object]", parsed)
        return [str(item) for item in entries]
    return [str(parsed)]


__all__ = [
    "PromptRecordStore",
    "RepositoryError",
    "RepositoryNotFoundError",
    "connect",
    "ensure_directory",
    "json_dumps",
    "json_loads_list",
    "logger",
    "snapshot_next_version",
    "stringify_uuid",
]
