"""Semantic version number policy for prompt history.

Numbers take the form ``"<major>.<minor>"`` and are always derived from the
version designated as current, not from the most recently created one; the two
differ after a restore.

Updates:
  v0.2.0 - 2026-10-12 - Skip numbers already held or retired when allocating.
  v0.1.0 - 2026-10-03 - Initial next-number policy.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from models.prompt_model import INITIAL_VERSION_NUMBER, BumpKind

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    import uuid
    from collections.abc import Iterable, Sequence

    from models.prompt_model import PromptVersion

__all__ = [
    "INITIAL_VERSION_NUMBER",
    "allocate_version_number",
    "bump_version_number",
    "format_version_number",
    "next_version_number",
    "parse_version_number",
]

_VERSION_PATTERN = re.compile(r"^\s*(\d+)(?:\.(\d+))?\s*$")


def parse_version_number(value: str | None) -> tuple[int, int] | None:
    """Return ``(major, minor)`` parsed from *value*, or ``None`` when malformed.

    A missing minor component reads as ``0`` so ``"3"`` parses as ``(3, 0)``.
    """
    if not value:
        return None
    match = _VERSION_PATTERN.match(value)
    if match is None:
        return None
    major = int(match.group(1))
    minor = int(match.group(2) or 0)
    return major, minor


def format_version_number(major: int, minor: int) -> str:
    """Return the canonical ``"<major>.<minor>"`` label."""
    return f"{major}.{minor}"


def bump_version_number(version_number: str, bump_kind: BumpKind | str) -> str:
    """Return *version_number* bumped by *bump_kind*.

    Unparseable input is treated as the initial number.
    """
    kind = BumpKind.parse(bump_kind)
    parsed = parse_version_number(version_number)
    if parsed is None:
        parsed = parse_version_number(INITIAL_VERSION_NUMBER)
        assert parsed is not None
    major, minor = parsed
    if kind is BumpKind.MAJOR:
        return format_version_number(major + 1, 0)
    return format_version_number(major, minor + 1)


def next_version_number(
    versions: Sequence[PromptVersion],
    current_version_id: uuid.UUID | None,
    bump_kind: BumpKind | str = BumpKind.MINOR,
) -> str:
    """Return the number the next version would receive.

    Pure: collisions with existing numbers are not checked here.
    """
    if not versions:
        return INITIAL_VERSION_NUMBER
    current = next((item for item in versions if item.id == current_version_id), None)
    if current is None:
        return bump_version_number(INITIAL_VERSION_NUMBER, bump_kind)
    if parse_version_number(current.version_number) is None:
        return INITIAL_VERSION_NUMBER
    return bump_version_number(current.version_number, bump_kind)


def allocate_version_number(
    versions: Sequence[PromptVersion],
    current_version_id: uuid.UUID | None,
    bump_kind: BumpKind | str = BumpKind.MINOR,
    *,
    reserved: Iterable[str] = (),
) -> str:
    """Return the next number, bumped further until it is not already taken.

    *reserved* carries numbers that no longer belong to a live version but must
    not be handed out again (permanently deleted versions).
    """
    taken = {item.version_number for item in versions}
    taken.update(reserved)
    candidate = next_version_number(versions, current_version_id, bump_kind)
    while candidate in taken:
        candidate = bump_version_number(candidate, bump_kind)
    return candidate
