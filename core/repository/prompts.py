"""Prompt and version persistence for the SQLite store.

Updates:
  v0.12.1 - 2026-10-12 - Retire purged version numbers inside the delete transaction.
  v0.12.0 - 2026-10-06 - Rework prompt CRUD into version lifecycle operations.
  v0.11.0 - 2025-12-04 - Extract prompt CRUD/category/version helpers into mixin.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, ClassVar

from models.prompt_model import Prompt, PromptVersion

from .base import (
    RepositoryError,
    RepositoryNotFoundError,
    connect as _connect,
    json_dumps as _json_dumps,
    json_loads_list as _json_loads_list,
    logger,
    snapshot_next_version,
    stringify_uuid as _stringify_uuid,
)

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence
    from pathlib import Path

    from models.prompt_model import BumpKind, PromptContent


class PromptStoreMixin:
    """Prompt aggregate and version history persistence helpers."""

    _db_path: Path

    _COLUMNS: ClassVar[Sequence[str]] = (
        "id",
        "title",
        "description",
        "current_version_id",
        "system_prompt",
        "user_template",
        "model",
        "temperature",
        "max_tokens",
        "category",
        "tags",
        "collection_id",
        "favorite",
        "status",
        "created_at",
        "updated_at",
        "created_by",
        "retired_version_numbers",
    )

    _VERSION_COLUMNS: ClassVar[Sequence[str]] = (
        "id",
        "prompt_id",
        "version_number",
        "system_prompt",
        "user_template",
        "model",
        "temperature",
        "max_tokens",
        "change_note",
        "created_at",
        "created_by",
        "deleted",
        "deleted_at",
    )

    # Prompt CRUD -------------------------------------------------------- #

    def list_prompts(self) -> list[Prompt]:
        """Return prompts ordered by most recently updated."""
        try:
            with _connect(self._db_path) as conn:
                rows = conn.execute(
                    "SELECT * FROM prompts ORDER BY datetime(updated_at) DESC;"
                ).fetchall()
                return [self._load_prompt(conn, row) for row in rows]
        except sqlite3.Error as exc:
            raise RepositoryError("Failed to fetch prompt list") from exc

    def get_prompt(self, prompt_id: uuid.UUID) -> Prompt:
        """Fetch a prompt and its full version history."""
        try:
            with _connect(self._db_path) as conn:
                row = self._fetch_prompt_row(conn, prompt_id)
                return self._load_prompt(conn, row)
        except RepositoryNotFoundError:
            raise
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to load prompt {prompt_id}") from exc

    def add_prompt(self, prompt: Prompt) -> Prompt:
        """Insert a new prompt record together with its versions."""
        placeholders = ", ".join(f":{column}" for column in self._COLUMNS)
        query = f"INSERT INTO prompts ({', '.join(self._COLUMNS)}) VALUES ({placeholders});"
        try:
            with _connect(self._db_path) as conn:
                conn.execute(query, self._prompt_to_row(prompt))
                for version in prompt.versions:
                    self._insert_version(conn, version)
        except sqlite3.IntegrityError as exc:
            raise RepositoryError(f"Prompt {prompt.id} already exists") from exc
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to insert prompt {prompt.id}") from exc
        return prompt

    def delete_prompt(self, prompt_id: uuid.UUID) -> None:
        """Delete a prompt; versions cascade."""
        try:
            with _connect(self._db_path) as conn:
                cursor = conn.execute(
                    "DELETE FROM prompts WHERE id = ?;",
                    (_stringify_uuid(prompt_id),),
                )
                if cursor.rowcount == 0:
                    raise RepositoryNotFoundError(f"Prompt {prompt_id} not found")
        except RepositoryNotFoundError:
            raise
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to delete prompt {prompt_id}") from exc

    # Version lifecycle -------------------------------------------------- #

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
        now = datetime.now(UTC)
        try:
            with _connect(self._db_path) as conn:
                prompt = self._load_prompt(conn, self._fetch_prompt_row(conn, prompt_id))
                version = snapshot_next_version(
                    prompt,
                    change_note=change_note,
                    bump_kind=bump_kind,
                    created_by=created_by,
                    content=content,
                    now=now,
                )
                self._insert_version(conn, version)
                self._update_prompt(conn, prompt.with_new_version(version, now=now))
        except RepositoryNotFoundError:
            raise
        except sqlite3.IntegrityError as exc:
            raise RepositoryError(
                f"Version number conflict while versioning prompt {prompt_id}"
            ) from exc
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to record version for prompt {prompt_id}") from exc
        logger.debug(
            "Recorded prompt version",
            extra={"prompt_id": str(prompt_id), "version_number": version.version_number},
        )
        return version

    def restore_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Point the prompt at *version_id* and mirror its content."""
        try:
            with _connect(self._db_path) as conn:
                prompt = self._load_prompt(conn, self._fetch_prompt_row(conn, prompt_id))
                self._require_version(prompt, version_id)
                updated = prompt.with_current_version(version_id)
                self._update_prompt(conn, updated)
        except RepositoryNotFoundError:
            raise
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to restore version {version_id}") from exc
        return updated

    def soft_delete_version(
        self,
        prompt_id: uuid.UUID,
        version_id: uuid.UUID,
        *,
        deleted_at: datetime,
    ) -> None:
        """Flag a version as deleted."""
        self._set_deleted(prompt_id, version_id, deleted_at)

    def restore_soft_deleted_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Clear the soft-delete flags on a version."""
        self._set_deleted(prompt_id, version_id, None)

    def hard_delete_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Remove a version row and retire its number on the prompt."""
        try:
            with _connect(self._db_path) as conn:
                prompt = self._load_prompt(conn, self._fetch_prompt_row(conn, prompt_id))
                self._require_version(prompt, version_id)
                conn.execute(
                    "DELETE FROM prompt_versions WHERE id = ? AND prompt_id = ?;",
                    (_stringify_uuid(version_id), _stringify_uuid(prompt_id)),
                )
                self._update_prompt(conn, prompt.without_version(version_id))
        except RepositoryNotFoundError:
            raise
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to delete version {version_id}") from exc

    # Internal helpers --------------------------------------------------- #

    def _set_deleted(
        self,
        prompt_id: uuid.UUID,
        version_id: uuid.UUID,
        deleted_at: datetime | None,
    ) -> None:
        try:
            with _connect(self._db_path) as conn:
                self._fetch_prompt_row(conn, prompt_id)
                cursor = conn.execute(
                    """
                    UPDATE prompt_versions
                    SET deleted = ?, deleted_at = ?
                    WHERE id = ? AND prompt_id = ?;
                    """,
                    (
                        int(deleted_at is not None),
                        deleted_at.isoformat() if deleted_at is not None else None,
                        _stringify_uuid(version_id),
                        _stringify_uuid(prompt_id),
                    ),
                )
                if cursor.rowcount == 0:
                    raise RepositoryNotFoundError(f"Version {version_id} not found")
                conn.execute(
                    "UPDATE prompts SET updated_at = ? WHERE id = ?;",
                    (datetime.now(UTC).isoformat(), _stringify_uuid(prompt_id)),
                )
        except RepositoryNotFoundError:
            raise
        except sqlite3.Error as exc:
            raise RepositoryError(f"Failed to update version {version_id}") from exc

    @staticmethod
    def _require_version(prompt: Prompt, version_id: uuid.UUID) -> None:
        if prompt.find_version(version_id) is None:
            raise RepositoryNotFoundError(f"Version {version_id} not found")

    @staticmethod
    def _fetch_prompt_row(conn: sqlite3.Connection, prompt_id: uuid.UUID) -> sqlite3.Row:
        row = conn.execute(
            "SELECT * FROM prompts WHERE id = ?;",
            (_stringify_uuid(prompt_id),),
        ).fetchone()
        if row is None:
            raise RepositoryNotFoundError(f"Prompt {prompt_id} not found")
        return row

    def _load_prompt(self, conn: sqlite3.Connection, row: sqlite3.Row) -> Prompt:
        version_rows = conn.execute(
            "SELECT * FROM prompt_versions WHERE prompt_id = ?;",
            (row["id"],),
        ).fetchall()
        return self._row_to_prompt(row, version_rows)

    def _insert_version(self, conn: sqlite3.Connection, version: PromptVersion) -> None:
        placeholders = ", ".join(f":{column}" for column in self._VERSION_COLUMNS)
        conn.execute(
            f"INSERT INTO prompt_versions ({', '.join(self._VERSION_COLUMNS)}) "
            f"VALUES ({placeholders});",
            self._version_to_row(version),
        )

    def _update_prompt(self, conn: sqlite3.Connection, prompt: Prompt) -> None:
        assignments = ", ".join(
            f"{column} = :{column}" for column in self._COLUMNS if column != "id"
        )
        cursor = conn.execute(
            f"UPDATE prompts SET {assignments} WHERE id = :id;",
            self._prompt_to_row(prompt),
        )
        if cursor.rowcount == 0:
            raise RepositoryNotFoundError(f"Prompt {prompt.id} not found")

    def _prompt_to_row(self, prompt: Prompt) -> dict[str, Any]:
        """Serialise Prompt into SQLite mapping."""
        return {
            "id": _stringify_uuid(prompt.id),
            "title": prompt.title,
            "description": prompt.description,
            "current_version_id": (
                _stringify_uuid(prompt.current_version_id)
                if prompt.current_version_id is not None
                else None
            ),
            "system_prompt": prompt.system_prompt,
            "user_template": prompt.user_template,
            "model": prompt.model,
            "temperature": prompt.temperature,
            "max_tokens": prompt.max_tokens,
            "category": prompt.category.value,
            "tags": _json_dumps(prompt.tags),
            "collection_id": prompt.collection_id,
            "favorite": int(prompt.favorite),
            "status": prompt.status.value,
            "created_at": prompt.created_at.isoformat(),
            "updated_at": prompt.updated_at.isoformat(),
            "created_by": prompt.created_by,
            "retired_version_numbers": _json_dumps(prompt.retired_version_numbers),
        }

    def _version_to_row(self, version: PromptVersion) -> dict[str, Any]:
        """Serialise PromptVersion into SQLite mapping."""
        record = version.to_record()
        record["deleted"] = int(version.deleted)
        return record

    def _row_to_prompt(
        self,
        row: sqlite3.Row,
        version_rows: Sequence[sqlite3.Row],
    ) -> Prompt:
        """Hydrate Prompt from SQLite rows."""
        payload: dict[str, Any] = {
            "id": row["id"],
            "title": row["title"],
            "description": row["description"],
            "current_version_id": row["current_version_id"],
            "system_prompt": row["system_prompt"],
            "user_template": row["user_template"],
            "model": row["model"],
            "temperature": row["temperature"],
            "max_tokens": row["max_tokens"],
            "category": row["category"],
            "tags": _json_loads_list(row["tags"]),
            "collection_id": row["collection_id"],
            "favorite": bool(row["favorite"]),
            "status": row["status"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
            "created_by": row["created_by"],
            "retired_version_numbers": _json_loads_list(row["retired_version_numbers"]),
            "versions": [dict(version_row) for version_row in version_rows],
        }
        return Prompt.from_record(payload)


__all__ = ["PromptStoreMixin"]
