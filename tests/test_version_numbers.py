"""Tests for prompt version number derivation.

Updates:
  v0.1.0 - 2026-10-12 - Cover bumping, current-version anchoring, and retired numbers.
"""

from __future__ import annotations

import uuid

import pytest

from core.version_numbers import (
    allocate_version_number,
    bump_version_number,
    next_version_number,
    parse_version_number,
)
from models.prompt_model import BumpKind, PromptContent, PromptVersion


def _version(number: str) -> PromptVersion:
    return PromptVersion.snapshot(uuid.uuid4(), PromptContent(), version_number=number)


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1.0", (1, 0)), ("12.34", (12, 34)), ("3", (3, 0)), (" 2.1 ", (2, 1))],
)
def test_parse_version_number_accepts_major_minor(value: str, expected: tuple[int, int]) -> None:
    """Parse well-formed numbers, reading a missing minor as zero."""
    assert parse_version_number(value) == expected


@pytest.mark.parametrize("value", ["", None, "v1.0", "1.2.3", "one"])
def test_parse_version_number_rejects_malformed(value: str | None) -> None:
    """Return None for labels that are not major.minor."""
    assert parse_version_number(value) is None


def test_bump_version_number_minor_and_major() -> None:
    """Minor bumps increment the minor part; major bumps reset it."""
    assert bump_version_number("1.9", BumpKind.MINOR) == "1.10"
    assert bump_version_number("1.9", "major") == "2.0"
    assert bump_version_number("garbage", "minor") == "1.1"


def test_next_version_number_uses_current_not_latest() -> None:
    """Derive the next number from the current version after a restore."""
    first = _version("1.0")
    second = _version("1.1")
    history = [first, second]

    assert next_version_number(history, second.id, BumpKind.MAJOR) == "2.0"
    assert next_version_number(history, first.id, BumpKind.MINOR) == "1.1"


def test_next_version_number_edge_cases() -> None:
    """Handle empty histories, dangling pointers, and malformed current labels."""
    assert next_version_number([], None) == "1.0"
    orphan = _version("4.2")
    assert next_version_number([orphan], uuid.uuid4(), BumpKind.MINOR) == "1.1"
    odd = _version("draft")
    assert next_version_number([odd], odd.id) == "1.0"


def test_allocate_version_number_skips_taken_numbers() -> None:
    """Bump past numbers that a newer version already holds."""
    first = _version("1.0")
    second = _version("1.1")
    third = _version("1.2")

    number = allocate_version_number([first, second, third], first.id, BumpKind.MINOR)

    assert number == "1.3"


def test_allocate_version_number_respects_retired_numbers() -> None:
    """Never hand out a number that belonged to a purged version."""
    first = _version("1.0")

    number = allocate_version_number([first], first.id, "minor", reserved=["1.1"])

    assert number == "1.2"
