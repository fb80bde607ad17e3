"""Prompt dataclass serialization and transition coverage tests.

Updates:
  v0.2.0 - 2026-10-06 - Cover version snapshots, transitions, and integrity checks.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

import pytest

from models.prompt_model import (
    BumpKind,
    Prompt,
    PromptCategory,
    PromptContent,
    PromptVersion,
    _ensure_datetime,
    _optional_datetime,
    _serialize_list,
    integrity_violations,
)

_NOW = datetime(2026, 6, 1, 12, 0, tzinfo=UTC)


def test_helper_functions_cover_edge_cases() -> None:
    naive_dt = datetime(2025, 10, 30, 12, 0, 0)
    assert _ensure_datetime(naive_dt).tzinfo is UTC
    assert _ensure_datetime("2026-01-02T03:04:05Z") == datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)
    assert _optional_datetime("") is None
    assert _optional_datetime("yesterday") is None
    assert _serialize_list("tag") == ["tag"]
    assert _serialize_list(None) == []
    assert _serialize_list(("a", 1)) == ["a", "1"]


def test_bump_kind_parse() -> None:
    assert BumpKind.parse(None) is BumpKind.MINOR
    assert BumpKind.parse(" Major ") is BumpKind.MAJOR
    with pytest.raises(ValueError):
        BumpKind.parse("patch")


def test_prompt_record_roundtrip() -> None:
    prompt = Prompt.create(
        "Serializer",
        PromptContent(system_prompt="Hello", temperature=0.1),
        description="Covers records",
        category=PromptCategory.AUDIO,
        tags=["one", "two"],
        created_by="ana",
        now=_NOW,
    )
    second = PromptVersion.snapshot(
        prompt.id,
        PromptContent(system_prompt="Hello again"),
        version_number="1.1",
        created_at=_NOW,
    )
    prompt = prompt.with_new_version(second, now=_NOW).without_version(prompt.versions[0].id)

    restored = Prompt.from_record(prompt.to_record())

    assert restored == prompt
    assert restored.retired_version_numbers == ["1.0"]
    assert restored.category is PromptCategory.AUDIO


def test_version_from_record_ignores_stale_deleted_at() -> None:
    version = PromptVersion.snapshot(uuid.uuid4(), PromptContent(), version_number="1.0")
    record = version.to_record()
    record["deleted_at"] = _NOW.isoformat()

    assert PromptVersion.from_record(record).deleted_at is None


def test_transitions_leave_original_untouched() -> None:
    prompt = Prompt.create("Immutable", PromptContent(system_prompt="v1"), now=_NOW)
    original = prompt.to_record()
    second = PromptVersion.snapshot(
        prompt.id,
        PromptContent(system_prompt="v2"),
        version_number="1.1",
    )

    updated = prompt.with_new_version(second)
    deleted = updated.with_version_deleted(prompt.versions[0].id, _NOW)
    draft = prompt.with_content(PromptContent(system_prompt="draft"))

    assert prompt.to_record() == original
    assert updated.system_prompt == "v2"
    assert deleted.versions[0].deleted
    assert not updated.versions[0].deleted
    assert draft.system_prompt == "draft"
    with pytest.raises(KeyError):
        prompt.with_current_version(uuid.uuid4())


def test_integrity_violations_detects_broken_aggregates() -> None:
    prompt = Prompt.create("Checks", PromptContent(system_prompt="v1"), now=_NOW)
    assert integrity_violations(prompt) == []

    drifted = prompt.with_content(PromptContent(system_prompt="unsaved"))
    assert integrity_violations(drifted) == [
        "mirrored content differs from the current version"
    ]

    orphaned = prompt.clone()
    orphaned.current_version_id = None
    assert "current version is missing from the version set" in integrity_violations(orphaned)

    deleted_current = prompt.with_version_deleted(prompt.versions[0].id, _NOW)
    problems = integrity_violations(deleted_current)
    assert "current version is soft-deleted" in problems
    assert "prompt has no active version" in problems
