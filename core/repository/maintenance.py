"""Schema bootstrap and maintenance helpers for the SQLite store.

Updates:
  v0.12.2 - 2026-10-19 - Drop the unused reset helper.
  v0.12.1 - 2026-10-12 - Add retired version number column for purged history.
  v0.12.0 - 2026-10-06 - Replace catalogue schema with prompt/version lifecycle tables.
  v0.11.1 - 2025-12-07 - Restrict Path import to type checking contexts.
  v0.11.0 - 2025-12-04 - Extract schema management and reset helpers.
"""

from __future__ import annotations

import sqlite3
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from pathlib import Path


class RepositoryMaintenanceMixin:
    """Tasks that create and migrate repository storage."""

    _db_path: Path

    def _ensure_schema(self, conn: sqlite3.Connection) -> None:
        """Create required tables if they do not exist."""
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS prompts (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                current_version_id TEXT,
                system_prompt TEXT NOT NULL DEFAULT '',
                user_template TEXT NOT NULL DEFAULT '',
                model TEXT NOT NULL,
                temperature REAL NOT NULL,
                max_tokens INTEGER NOT NULL,
                category TEXT NOT NULL DEFAULT 'text',
                tags TEXT,
                collection_id TEXT,
                favorite INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL DEFAULT 'active',
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                created_by TEXT,
                retired_version_numbers TEXT
            );
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_prompts_status ON prompts(status);")
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS prompt_versions (
                id TEXT PRIMARY KEY,
                prompt_id TEXT NOT NULL,
                version_number TEXT NOT NULL,
                system_prompt TEXT NOT NULL DEFAULT '',
                user_template TEXT NOT NULL DEFAULT '',
                model TEXT NOT NULL,
                temperature REAL NOT NULL,
                max_tokens INTEGER NOT NULL,
                change_note TEXT NOT NULL DEFAULT '',
                created_at TEXT,
                created_by TEXT,
                deleted INTEGER NOT NULL DEFAULT 0,
                deleted_at TEXT,
                UNIQUE(prompt_id, version_number),
                FOREIGN KEY(prompt_id) REFERENCES prompts(id) ON DELETE CASCADE
            );
            """
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_prompt_versions_prompt_id "
            "ON prompt_versions(prompt_id);"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_prompt_versions_created_at "
            "ON prompt_versions(created_at);"
        )
        prompt_columns = {row["name"] for row in conn.execute("PRAGMA table_info(prompts);")}
        for column, ddl in (
            ("collection_id", "ALTER TABLE prompts ADD COLUMN collection_id TEXT;"),
            ("created_by", "ALTER TABLE prompts ADD COLUMN created_by TEXT;"),
            (
                "retired_version_numbers",
                "ALTER TABLE prompts ADD COLUMN retired_version_numbers TEXT;",
            ),
        ):
            if column not in prompt_columns:
                conn.execute(ddl)
        version_columns = {
            row["name"] for row in conn.execute("PRAGMA table_info(prompt_versions);")
        }
        if "created_by" not in version_columns:
            conn.execute("ALTER TABLE prompt_versions ADD COLUMN created_by TEXT;")


__all__ = ["RepositoryMaintenanceMixin"]
