"""Record stores backing the prompt version lifecycle.

Updates:
  v0.12.0 - 2026-10-06 - Add in-memory and remote stores next to the SQLite store.
  v0.11.1 - 2025-12-04 - Modularize repository via prompt/maintenance mixins.
  v0.11.0 - 2025-12-04 - Begin modularization by extracting base helpers.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .base import (
    PromptRecordStore,
    RepositoryError,
    RepositoryNotFoundError,
    connect as _connect,
    ensure_directory as _ensure_directory,
)
from .maintenance import RepositoryMaintenanceMixin
from .memory import InMemoryPromptStore
from .prompts import PromptStoreMixin
from .remote import RemotePromptStore


class SQLitePromptStore(RepositoryMaintenanceMixin, PromptStoreMixin):
    """Compose repository mixins for SQLite-backed storage."""

    def __init__(self, db_path: str | Path) -> None:
        """Initialise repository storage and ensure the schema exists."""
        self._db_path = Path(db_path)
        _ensure_directory(self._db_path)
        try:
            with _connect(self._db_path) as conn:
                self._ensure_schema(conn)
        except sqlite3.Error as exc:  # pragma: no cover - defensive
            raise RepositoryError("Failed to initialise SQLite schema") from exc


__all__ = [
    "InMemoryPromptStore",
    "PromptRecordStore",
    "RemotePromptStore",
    "RepositoryError",
    "RepositoryNotFoundError",
    "SQLitePromptStore",
]
