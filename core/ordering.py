"""Deterministic ordering of prompt versions for display and diff baselines.

Updates:
  v0.1.1 - 2026-10-09 - Break remaining ties on the version identifier.
  v0.1.0 - 2026-10-04 - Initial newest-first comparator.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING

from .diff import DiffStats, compute_diff, diff_stats
from .version_numbers import parse_version_number

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    import uuid
    from collections.abc import Iterable, Sequence

    from models.prompt_model import PromptVersion

__all__ = [
    "compare_versions_for_display",
    "diff_baseline",
    "partition_versions",
    "sort_versions",
    "version_diff_stats",
]


def _version_key(version: PromptVersion) -> tuple[int, int]:
    return parse_version_number(version.version_number) or (0, 0)


def compare_versions_for_display(left: PromptVersion, right: PromptVersion) -> int:
    """Return a negative number when *left* sorts before *right* (newest first).

    Ordering: creation time descending; when timestamps are equal or missing,
    major then minor descending; finally the identifier descending.
    """
    if (
        left.created_at is not None
        and right.created_at is not None
        and left.created_at != right.created_at
    ):
        return -1 if left.created_at > right.created_at else 1

    left_key = _version_key(left)
    right_key = _version_key(right)
    if left_key != right_key:
        return -1 if left_key > right_key else 1

    left_id = str(left.id)
    right_id = str(right.id)
    if left_id != right_id:
        return -1 if left_id > right_id else 1
    return 0


def sort_versions(versions: Iterable[PromptVersion]) -> list[PromptVersion]:
    """Return *versions* ordered newest first."""
    return sorted(versions, key=functools.cmp_to_key(compare_versions_for_display))


def partition_versions(
    versions: Iterable[PromptVersion],
) -> tuple[list[PromptVersion], list[PromptVersion]]:
    """Split into sorted ``(active, soft_deleted)`` lists."""
    active: list[PromptVersion] = []
    deleted: list[PromptVersion] = []
    for version in versions:
        (deleted if version.deleted else active).append(version)
    return sort_versions(active), sort_versions(deleted)


def diff_baseline(
    active_sorted: Sequence[PromptVersion],
    version_id: uuid.UUID,
) -> PromptVersion | None:
    """Return the next-older active version, or ``None`` for the oldest."""
    for index, version in enumerate(active_sorted):
        if version.id == version_id:
            if index + 1 < len(active_sorted):
                return active_sorted[index + 1]
            return None
    return None


def version_diff_stats(active_sorted: Sequence[PromptVersion]) -> dict[uuid.UUID, DiffStats]:
    """Return system prompt change statistics keyed by version id.

    The oldest active version has no baseline and therefore no entry.
    """
    stats: dict[uuid.UUID, DiffStats] = {}
    for index in range(len(active_sorted) - 1):
        current = active_sorted[index]
        previous = active_sorted[index + 1]
        stats[current.id] = diff_stats(compute_diff(previous.system_prompt, current.system_prompt))
    return stats
