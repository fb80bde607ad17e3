"""Prompt version lifecycle orchestration.

:class:`VersionLifecycleManager` is the only component that mutates a prompt's
version set. Every operation validates against the aggregate the manager
holds, performs at most one store mutation, and then replaces the cached
aggregate in a single assignment. Failures leave the cache untouched, are
recorded in :attr:`VersionLifecycleManager.last_error` and re-raised.

Updates:
  v0.4.1 - 2026-10-19 - Warn when an aggregate loaded from the store fails integrity checks.
  v0.4.0 - 2026-10-14 - Add version history view with diff stats and purge countdowns.
  v0.3.0 - 2026-10-11 - Track the most recent failure for presentation layers.
  v0.2.0 - 2026-10-07 - Enforce current/last version protection before store calls.
  v0.1.0 - 2026-10-03 - Initial create/restore/delete lifecycle operations.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Concatenate

from models.prompt_model import BumpKind, Prompt, PromptCategory, integrity_violations

from .diff import DiffStats, PromptVersionDiff, compare_versions as diff_versions
from .exceptions import (
    CurrentVersionProtectedError,
    LastVersionProtectedError,
    PromptIntegrityError,
    PromptManagerError,
    PromptNotFoundError,
    PromptStorageError,
    PromptVersionNotFoundError,
    VersionDeletedError,
    VersionInputError,
    VersionNotDeletedError,
)
from .ordering import diff_baseline, partition_versions, sort_versions, version_diff_stats
from .repository import RepositoryError, RepositoryNotFoundError
from .retention import DEFAULT_RETENTION_DAYS, days_until_purge

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    import uuid
    from collections.abc import Callable, Iterable

    from models.prompt_model import PromptContent, PromptVersion

    from .repository import PromptRecordStore

logger = logging.getLogger("prompt_versions.manager")

MAX_CHANGE_NOTE_LENGTH = 500

__all__ = [
    "MAX_CHANGE_NOTE_LENGTH",
    "VersionHistory",
    "VersionHistoryEntry",
    "VersionLifecycleManager",
]


@dataclass(slots=True, frozen=True)
class VersionHistoryEntry:
    """One row of the version history view."""

    version: PromptVersion
    is_current: bool
    baseline: PromptVersion | None = None
    stats: DiffStats | None = None
    days_until_purge: int | None = None


@dataclass(slots=True, frozen=True)
class VersionHistory:
    """Active and soft-deleted versions of a prompt, newest first."""

    prompt: Prompt
    active: list[VersionHistoryEntry]
    deleted: list[VersionHistoryEntry]


def _records_errors[**P, R](
    method: Callable[Concatenate[VersionLifecycleManager, P], R],
) -> Callable[Concatenate[VersionLifecycleManager, P], R]:
    """Store failures in ``last_error`` and clear it after a successful call."""

    @functools.wraps(method)
    def wrapper(self: VersionLifecycleManager, *args: P.args, **kwargs: P.kwargs) -> R:
        try:
            result = method(self, *args, **kwargs)
        except PromptManagerError as exc:
            self._last_error = exc
            logger.warning(
                "Version operation failed",
                extra={
                    "operation": method.__name__,
                    "error_kind": exc.kind.value,
                    "error": str(exc),
                },
            )
            raise
        self._last_error = None
        return result

    return wrapper


class VersionLifecycleManager:
    """Create, restore, and delete prompt versions against a record store."""

    def __init__(
        self,
        store: PromptRecordStore,
        *,
        retention_days: int = DEFAULT_RETENTION_DAYS,
        default_author: str | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._retention_days = retention_days
        self._default_author = default_author
        self._clock = clock or (lambda: datetime.now(UTC))
        self._prompts: dict[uuid.UUID, Prompt] = {}
        self._last_error: PromptManagerError | None = None

    @property
    def store(self) -> PromptRecordStore:
        """Return the record store collaborator."""
        return self._store

    @property
    def last_error(self) -> PromptManagerError | None:
        """Return the failure raised by the most recent operation, if any."""
        return self._last_error

    @property
    def retention_days(self) -> int:
        """Return the display retention window for soft-deleted versions."""
        return self._retention_days

    def close(self) -> None:
        """Release store resources such as HTTP connection pools."""
        close = getattr(self._store, "close", None)
        if callable(close):
            close()
        self._prompts.clear()

    # Prompt access ------------------------------------------------------ #

    @_records_errors
    def list_prompts(self) -> list[Prompt]:
        """Reload every prompt from the store and return them."""
        prompts = self._call_store(self._store.list_prompts)
        for prompt in prompts:
            _warn_if_inconsistent(prompt)
        self._prompts = {prompt.id: prompt for prompt in prompts}
        return [prompt.clone() for prompt in prompts]

    @_records_errors
    def get_prompt(self, prompt_id: uuid.UUID, *, refresh: bool = False) -> Prompt:
        """Return a copy of the prompt aggregate, loading it on first use."""
        return self._load(prompt_id, refresh=refresh).clone()

    @_records_errors
    def create_prompt(
        self,
        title: str,
        content: PromptContent | None = None,
        *,
        description: str = "",
        category: PromptCategory | str = PromptCategory.TEXT,
        tags: Iterable[str] | None = None,
        collection_id: str | None = None,
        created_by: str | None = None,
    ) -> Prompt:
        """Create a prompt holding a single initial ``1.0`` version."""
        clean_title = (title or "").strip()
        if not clean_title:
            raise VersionInputError("Prompt title must not be empty.")
        try:
            resolved_category = PromptCategory(category)
        except ValueError as exc:
            raise VersionInputError(f"Unknown prompt category: {category}") from exc
        draft = Prompt.create(
            clean_title,
            content,
            created_by=created_by or self._default_author,
            description=description,
            category=resolved_category,
            tags=tags,
            collection_id=collection_id,
            now=self._clock(),
        )
        stored = self._call_store(lambda: self._store.add_prompt(draft))
        self._commit(stored)
        logger.info(
            "Created prompt",
            extra={"prompt_id": str(stored.id), "title": stored.title},
        )
        return stored.clone()

    @_records_errors
    def delete_prompt(self, prompt_id: uuid.UUID) -> None:
        """Remove a prompt and its entire history."""
        self._call_store(lambda: self._store.delete_prompt(prompt_id))
        self._prompts.pop(prompt_id, None)
        logger.info("Deleted prompt", extra={"prompt_id": str(prompt_id)})

    # Lifecycle operations ---------------------------------------------- #

    @_records_errors
    def create_version(
        self,
        prompt_id: uuid.UUID,
        change_note: str = "",
        bump_kind: BumpKind | str = BumpKind.MINOR,
        *,
        content: PromptContent | None = None,
        created_by: str | None = None,
    ) -> PromptVersion:
        """Snapshot the prompt content as a new current version.

        The number is derived from the current version rather than the highest
        existing one. When *content* is given it replaces the mirrored content
        in the same step.
        """
        note = _clean_change_note(change_note)
        try:
            kind = BumpKind.parse(bump_kind)
        except ValueError as exc:
            raise VersionInputError(f"Unknown version type: {bump_kind}") from exc
        prompt = self._load(prompt_id)
        version = self._call_store(
            lambda: self._store.create_version(
                prompt_id,
                change_note=note,
                bump_kind=kind,
                created_by=created_by or self._default_author,
                content=content,
            ),
            prompt_id=prompt_id,
        )
        self._commit(prompt.with_new_version(version, now=version.created_at or self._clock()))
        logger.info(
            "Created prompt version",
            extra={
                "prompt_id": str(prompt_id),
                "version_id": str(version.id),
                "version_number": version.version_number,
                "bump_kind": kind.value,
            },
        )
        return version

    @_records_errors
    def restore_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Make an existing version current again without creating a new one."""
        prompt = self._load(prompt_id)
        target = self._require_version(prompt, version_id)
        if target.deleted:
            raise VersionDeletedError(
                f"Version {target.version_number} is deleted; restore it from history first."
            )
        updated = self._call_store(
            lambda: self._store.restore_version(prompt_id, version_id),
            prompt_id=prompt_id,
            version_id=version_id,
        )
        self._commit(updated)
        logger.info(
            "Restored prompt version",
            extra={"prompt_id": str(prompt_id), "version_number": target.version_number},
        )
        return updated.clone()

    @_records_errors
    def delete_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Soft-delete a non-current version while keeping it in history."""
        prompt = self._load(prompt_id)
        target = self._require_version(prompt, version_id)
        if len(prompt.active_versions()) <= 1:
            raise LastVersionProtectedError("Cannot delete the only remaining version")
        if prompt.current_version_id == version_id:
            raise CurrentVersionProtectedError("Cannot delete the current active version")
        if target.deleted:
            return prompt.clone()
        deleted_at = self._clock()
        self._call_store(
            lambda: self._store.soft_delete_version(prompt_id, version_id, deleted_at=deleted_at),
            prompt_id=prompt_id,
            version_id=version_id,
        )
        updated = prompt.with_version_deleted(version_id, deleted_at)
        self._commit(updated)
        logger.info(
            "Soft-deleted prompt version",
            extra={"prompt_id": str(prompt_id), "version_number": target.version_number},
        )
        return updated.clone()

    @_records_errors
    def restore_deleted_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Return a soft-deleted version to the active history (not current)."""
        prompt = self._load(prompt_id)
        target = self._require_version(prompt, version_id)
        if not target.deleted:
            raise VersionNotDeletedError("Version is not deleted")
        self._call_store(
            lambda: self._store.restore_soft_deleted_version(prompt_id, version_id),
            prompt_id=prompt_id,
            version_id=version_id,
        )
        updated = prompt.with_version_undeleted(version_id)
        self._commit(updated)
        logger.info(
            "Restored soft-deleted prompt version",
            extra={"prompt_id": str(prompt_id), "version_number": target.version_number},
        )
        return updated.clone()

    @_records_errors
    def permanent_delete_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Remove a version for good; its number is never handed out again."""
        prompt = self._load(prompt_id)
        target = self._require_version(prompt, version_id)
        if prompt.current_version_id == version_id:
            raise CurrentVersionProtectedError(
                "Cannot permanently delete the current active version"
            )
        self._call_store(
            lambda: self._store.hard_delete_version(prompt_id, version_id),
            prompt_id=prompt_id,
            version_id=version_id,
        )
        updated = prompt.without_version(version_id)
        self._commit(updated)
        logger.info(
            "Permanently deleted prompt version",
            extra={"prompt_id": str(prompt_id), "version_number": target.version_number},
        )
        return updated.clone()

    # Read-side helpers -------------------------------------------------- #

    @_records_errors
    def list_versions(self, prompt_id: uuid.UUID) -> VersionHistory:
        """Return the sorted history view with diff stats and purge countdowns."""
        prompt = self._load(prompt_id).clone()
        active, deleted = partition_versions(prompt.versions)
        stats = version_diff_stats(active)
        now = self._clock()
        active_entries = [
            VersionHistoryEntry(
                version=version,
                is_current=version.id == prompt.current_version_id,
                baseline=diff_baseline(active, version.id),
                stats=stats.get(version.id),
            )
            for version in active
        ]
        deleted_entries = [
            VersionHistoryEntry(
                version=version,
                is_current=False,
                days_until_purge=(
                    days_until_purge(
                        version.deleted_at,
                        now=now,
                        retention_days=self._retention_days,
                    )
                    if version.deleted_at is not None
                    else None
                ),
            )
            for version in deleted
        ]
        return VersionHistory(prompt=prompt, active=active_entries, deleted=deleted_entries)

    @_records_errors
    def compare_versions(
        self,
        prompt_id: uuid.UUID,
        base_version_id: uuid.UUID,
        target_version_id: uuid.UUID,
    ) -> PromptVersionDiff:
        """Return a structured diff between two versions of the same prompt."""
        prompt = self._load(prompt_id)
        base = self._require_version(prompt, base_version_id)
        target = self._require_version(prompt, target_version_id)
        return diff_versions(base, target)

    @_records_errors
    def diff_against_baseline(
        self,
        prompt_id: uuid.UUID,
        version_id: uuid.UUID,
    ) -> PromptVersionDiff | None:
        """Diff a version against the next-older active version.

        Returns ``None`` for the oldest version, which has no baseline.
        """
        prompt = self._load(prompt_id)
        target = self._require_version(prompt, version_id)
        candidates = prompt.active_versions()
        if target.deleted:
            candidates.append(target)
        baseline = diff_baseline(sort_versions(candidates), version_id)
        if baseline is None:
            return None
        return diff_versions(baseline, target)

    # Internal helpers --------------------------------------------------- #

    def _load(self, prompt_id: uuid.UUID, *, refresh: bool = False) -> Prompt:
        cached = None if refresh else self._prompts.get(prompt_id)
        if cached is not None:
            return cached
        prompt = self._call_store(lambda: self._store.get_prompt(prompt_id), prompt_id=prompt_id)
        _warn_if_inconsistent(prompt)
        self._prompts[prompt.id] = prompt
        return prompt

    @staticmethod
    def _require_version(prompt: Prompt, version_id: uuid.UUID) -> PromptVersion:
        version = prompt.find_version(version_id)
        if version is None:
            raise PromptVersionNotFoundError("Version not found")
        return version

    def _call_store[T](
        self,
        operation: Callable[[], T],
        *,
        prompt_id: uuid.UUID | None = None,
        version_id: uuid.UUID | None = None,
    ) -> T:
        try:
            return operation()
        except RepositoryNotFoundError as exc:
            message = str(exc) or "Not found"
            if version_id is not None and "version" in message.lower():
                raise PromptVersionNotFoundError(message) from exc
            if prompt_id is not None:
                self._prompts.pop(prompt_id, None)
            raise PromptNotFoundError(message) from exc
        except RepositoryError as exc:
            raise PromptStorageError(str(exc) or "Record store failure") from exc

    def _commit(self, prompt: Prompt) -> None:
        problems = integrity_violations(prompt)
        if problems:
            logger.error(
                "Prompt aggregate failed integrity checks",
                extra={"prompt_id": str(prompt.id), "problems": problems},
            )
            self._prompts.pop(prompt.id, None)
            raise PromptIntegrityError("; ".join(problems))
        self._prompts[prompt.id] = prompt


def _warn_if_inconsistent(prompt: Prompt) -> None:
    # Served as-is: unsaved drafts drift from the current version until the next snapshot.
    problems = integrity_violations(prompt)
    if problems:
        logger.warning(
            "Loaded prompt fails integrity checks",
            extra={"prompt_id": str(prompt.id), "problems": problems},
        )


def _clean_change_note(change_note: str | None) -> str:
    note = (change_note or "").strip()
    if len(note) > MAX_CHANGE_NOTE_LENGTH:
        raise VersionInputError(
            f"Change note must be at most {MAX_CHANGE_NOTE_LENGTH} characters."
        )
    return note
