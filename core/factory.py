"""Factories for constructing version lifecycle managers from validated settings.

Updates:
  v0.9.0 - 2026-10-06 - Build record stores (memory, SQLite, remote) from settings.
  v0.8.8 - 2025-12-09 - Handle optional backend availability gracefully and surface status.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .exceptions import PromptStorageError
from .repository import (
    InMemoryPromptStore,
    RemotePromptStore,
    RepositoryError,
    SQLitePromptStore,
)
from .version_manager import VersionLifecycleManager

if TYPE_CHECKING:  # pragma: no cover - typing only
    import httpx

    from config import PromptVersionsSettings

    from .repository import PromptRecordStore

factory_logger = logging.getLogger("prompt_versions.factory")


def build_record_store(
    settings: PromptVersionsSettings,
    *,
    http_client: httpx.Client | None = None,
) -> PromptRecordStore:
    """Return the record store selected by ``settings.store_backend``."""
    backend = settings.store_backend
    if backend == "memory":
        return InMemoryPromptStore()
    if backend == "remote":
        if not settings.api_base_url:
            raise PromptStorageError("api_base_url is required for the remote store")
        factory_logger.debug(
            "Using remote prompt store",
            extra={"api_base_url": settings.api_base_url},
        )
        return RemotePromptStore(
            settings.api_base_url,
            token=settings.api_token,
            timeout=settings.request_timeout_seconds,
            client=http_client,
        )
    try:
        return SQLitePromptStore(settings.db_path)
    except RepositoryError as exc:
        raise PromptStorageError("Unable to initialise SQLite repository") from exc


def build_version_manager(
    settings: PromptVersionsSettings,
    *,
    store: PromptRecordStore | None = None,
    http_client: httpx.Client | None = None,
) -> VersionLifecycleManager:
    """Return a VersionLifecycleManager configured from validated settings."""
    resolved_store = store or build_record_store(settings, http_client=http_client)
    factory_logger.debug(
        "Built version lifecycle manager",
        extra={
            "store_backend": settings.store_backend,
            "retention_days": settings.retention_days,
        },
    )
    return VersionLifecycleManager(
        resolved_store,
        retention_days=settings.retention_days,
        default_author=settings.default_author,
    )


__all__ = ["build_record_store", "build_version_manager"]
