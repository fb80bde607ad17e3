"""Dict-backed record store used for local, non-persistent sessions and tests.

Updates:
  v0.1.0 - 2026-10-06 - Initial in-memory implementation of PromptRecordStore.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .base import RepositoryNotFoundError, logger, snapshot_next_version

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    import uuid
    from collections.abc import Iterable

    from models.prompt_model import BumpKind, Prompt, PromptContent, PromptVersion

__all__ = ["InMemoryPromptStore"]


class InMemoryPromptStore:
    """Keep prompt aggregates in a dictionary, copying on every boundary."""

    def __init__(self, prompts: Iterable[Prompt] | None = None) -> None:
        self._prompts: dict[uuid.UUID, Prompt] = {}
        for prompt in prompts or ():
            self._prompts[prompt.id] = prompt.clone()

    def list_prompts(self) -> list[Prompt]:
        """Return copies of all prompts, most recently updated first."""
        ordered = sorted(self._prompts.values(), key=lambda item: item.updated_at, reverse=True)
        return [prompt.clone() for prompt in ordered]

    def get_prompt(self, prompt_id: uuid.UUID) -> Prompt:
        """Return a copy of the stored prompt."""
        return self._require(prompt_id).clone()

    def add_prompt(self, prompt: Prompt) -> Prompt:
        """Store a new prompt aggregate."""
        self._prompts[prompt.id] = prompt.clone()
        return prompt.clone()

    def delete_prompt(self, prompt_id: uuid.UUID) -> None:
        """Drop a prompt together with its history."""
        self._require(prompt_id)
        del self._prompts[prompt_id]

    def create_version(
        self,
        prompt_id: uuid.UUID,
        *,
        change_note: str,
        bump_kind: BumpKind,
        created_by: str | None = None,
        content: PromptContent | None = None,
    ) -> PromptVersion:
        """Append a snapshot of the prompt content and make it current."""
        prompt = self._require(prompt_id)
        now = datetime.now(UTC)
        version = snapshot_next_version(
            prompt,
            change_note=change_note,
            bump_kind=bump_kind,
            created_by=created_by,
            content=content,
            now=now,
        )
        self._prompts[prompt_id] = prompt.with_new_version(version, now=now)
        logger.debug(
            "Stored prompt version in memory",
            extra={"prompt_id": str(prompt_id), "version_number": version.version_number},
        )
        return version

    def restore_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Switch the current pointer and mirror the version content."""
        prompt = self._require(prompt_id)
        self._require_version(prompt, version_id)
        updated = prompt.with_current_version(version_id)
        self._prompts[prompt_id] = updated
        return updated.clone()

    def soft_delete_version(
        self,
        prompt_id: uuid.UUID,
        version_id: uuid.UUID,
        *,
        deleted_at: datetime,
    ) -> None:
        """Flag a version as deleted."""
        prompt = self._require(prompt_id)
        self._require_version(prompt, version_id)
        self._prompts[prompt_id] = prompt.with_version_deleted(version_id, deleted_at)

    def restore_soft_deleted_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Clear the soft-delete flags on a version."""
        prompt = self._require(prompt_id)
        self._require_version(prompt, version_id)
        self._prompts[prompt_id] = prompt.with_version_undeleted(version_id)

    def hard_delete_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Remove a version and retire its number."""
        prompt = self._require(prompt_id)
        self._require_version(prompt, version_id)
        self._prompts[prompt_id] = prompt.without_version(version_id)

    def _require(self, prompt_id: uuid.UUID) -> Prompt:
        prompt = self._prompts.get(prompt_id)
        if prompt is None:
            raise RepositoryNotFoundError(f"Prompt {prompt_id} not found")
        return prompt

    @staticmethod
    def _require_version(prompt: Prompt, version_id: uuid.UUID) -> None:
        if prompt.find_version(version_id) is None:
            raise RepositoryNotFoundError(f"Version {version_id} not found")
