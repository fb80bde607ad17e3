"""Line-granularity diffing for prompt version snapshots.

The engine computes a minimal line diff (Myers, O(ND)) so the number of
unchanged lines always equals the longest common subsequence; statistics are
therefore symmetric when the arguments are swapped. A changed line is reported
as a removed line followed by an added line.

Updates:
  v0.3.0 - 2026-10-13 - Compare user templates and scalar model settings between versions.
  v0.2.0 - 2026-10-08 - Side-by-side panes with per-line highlighting.
  v0.1.0 - 2026-10-04 - Replace difflib opcodes with a minimal Myers diff.
"""

from __future__ import annotations

import difflib
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from models.prompt_model import PromptVersion

__all__ = [
    "DiffLine",
    "DiffLineType",
    "DiffStats",
    "PaneLine",
    "PromptVersionDiff",
    "SideBySideDiff",
    "compare_versions",
    "compute_diff",
    "diff_stats",
    "render_unified_diff",
    "side_by_side",
    "split_lines",
]

_SCALAR_FIELDS: tuple[str, ...] = ("model", "temperature", "max_tokens")


class DiffLineType(str, Enum):
    """Classify a line in a diff result."""

    SAME = "same"
    ADDED = "added"
    REMOVED = "removed"


@dataclass(slots=True, frozen=True)
class DiffLine:
    """Single annotated line produced by :func:`compute_diff`."""

    type: DiffLineType
    text: str


@dataclass(slots=True, frozen=True)
class DiffStats:
    """Added/removed line counts for a diff."""

    added: int = 0
    removed: int = 0

    @property
    def changed(self) -> bool:
        """Return ``True`` when at least one line differs."""
        return bool(self.added or self.removed)


@dataclass(slots=True, frozen=True)
class PaneLine:
    """Line rendered in one pane of a side-by-side view (1-based numbering)."""

    number: int
    text: str
    highlighted: bool


@dataclass(slots=True, frozen=True)
class SideBySideDiff:
    """Baseline (old) and target (new) panes plus the diff statistics."""

    old: tuple[PaneLine, ...]
    new: tuple[PaneLine, ...]
    stats: DiffStats


@dataclass(slots=True)
class PromptVersionDiff:
    """Diff payload surfaced when comparing two prompt versions."""

    prompt_id: uuid.UUID
    base_version: PromptVersion
    target_version: PromptVersion
    changed_fields: dict[str, dict[str, Any]]
    system_prompt: SideBySideDiff
    user_template: SideBySideDiff
    body_diff: str

    @property
    def stats(self) -> DiffStats:
        """Return system prompt statistics (the figure shown in history lists)."""
        return self.system_prompt.stats


def split_lines(text: str | None) -> list[str]:
    """Split *text* into lines the way the diff engine sees them.

    A final newline does not produce a trailing empty line and empty input
    yields a single empty line.
    """
    value = (text or "").replace("\r\n", "\n")
    lines = value.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines or [""]


def compute_diff(old_text: str | None, new_text: str | None) -> list[DiffLine]:
    """Return the annotated line diff turning *old_text* into *new_text*."""
    return _group_changes(_myers(split_lines(old_text), split_lines(new_text)))


def diff_stats(lines: Sequence[DiffLine]) -> DiffStats:
    """Count added and removed lines in a diff result."""
    added = sum(1 for line in lines if line.type is DiffLineType.ADDED)
    removed = sum(1 for line in lines if line.type is DiffLineType.REMOVED)
    return DiffStats(added=added, removed=removed)


def side_by_side(baseline_text: str | None, target_text: str | None) -> SideBySideDiff:
    """Return panes for a baseline/target comparison.

    The old pane lists every baseline line and highlights those removed
    relative to the target; the new pane lists every target line and highlights
    those added relative to the baseline.
    """
    lines = compute_diff(baseline_text, target_text)
    old: list[PaneLine] = []
    new: list[PaneLine] = []
    for line in lines:
        if line.type is DiffLineType.SAME:
            old.append(PaneLine(len(old) + 1, line.text, False))
            new.append(PaneLine(len(new) + 1, line.text, False))
        elif line.type is DiffLineType.REMOVED:
            old.append(PaneLine(len(old) + 1, line.text, True))
        else:
            new.append(PaneLine(len(new) + 1, line.text, True))
    return SideBySideDiff(old=tuple(old), new=tuple(new), stats=diff_stats(lines))


def render_unified_diff(
    before: str | None,
    after: str | None,
    *,
    label_a: str = "before",
    label_b: str = "after",
) -> str:
    """Return a unified diff for the provided text blocks."""
    diff = difflib.unified_diff(
        split_lines(before),
        split_lines(after),
        fromfile=label_a,
        tofile=label_b,
        lineterm="",
    )
    return "\n".join(diff)


def compare_versions(base: PromptVersion, target: PromptVersion) -> PromptVersionDiff:
    """Return a structured comparison of two snapshots of the same prompt."""
    if base.prompt_id != target.prompt_id:
        raise ValueError("Versions belong to different prompts")

    changed_fields: dict[str, dict[str, Any]] = {}
    for name in _SCALAR_FIELDS:
        base_value = getattr(base, name)
        target_value = getattr(target, name)
        if base_value != target_value:
            changed_fields[name] = {"from": base_value, "to": target_value}

    return PromptVersionDiff(
        prompt_id=base.prompt_id,
        base_version=base,
        target_version=target,
        changed_fields=changed_fields,
        system_prompt=side_by_side(base.system_prompt, target.system_prompt),
        user_template=side_by_side(base.user_template, target.user_template),
        body_diff=render_unified_diff(
            base.system_prompt,
            target.system_prompt,
            label_a=f"v{base.version_number}",
            label_b=f"v{target.version_number}",
        ),
    )


# Internal helpers ------------------------------------------------------- #


def _myers(a: Sequence[str], b: Sequence[str]) -> list[DiffLine]:
    """Return a minimal edit script between two line sequences."""
    n, m = len(a), len(b)
    prefix = 0
    while prefix < n and prefix < m and a[prefix] == b[prefix]:
        prefix += 1
    suffix = 0
    while suffix < n - prefix and suffix < m - prefix and a[n - 1 - suffix] == b[m - 1 - suffix]:
        suffix += 1

    head = [DiffLine(DiffLineType.SAME, line) for line in a[:prefix]]
    tail = [DiffLine(DiffLineType.SAME, line) for line in a[n - suffix :]]
    middle = _shortest_edit(a[prefix : n - suffix], b[prefix : m - suffix])
    return head + middle + tail


def _shortest_edit(a: Sequence[str], b: Sequence[str]) -> list[DiffLine]:
    n, m = len(a), len(b)
    if n == 0:
        return [DiffLine(DiffLineType.ADDED, line) for line in b]
    if m == 0:
        return [DiffLine(DiffLineType.REMOVED, line) for line in a]

    offset = n + m
    frontier = [0] * (2 * offset + 2)
    trace: list[list[int]] = []
    for depth in range(offset + 1):
        trace.append(list(frontier))
        for k in range(-depth, depth + 1, 2):
            if k == -depth or (
                k != depth and frontier[offset + k - 1] < frontier[offset + k + 1]
            ):
                x = frontier[offset + k + 1]
            else:
                x = frontier[offset + k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            frontier[offset + k] = x
            if x >= n and y >= m:
                return _backtrack(trace, a, b, offset)
    raise RuntimeError("diff search exhausted")  # pragma: no cover


def _backtrack(
    trace: list[list[int]],
    a: Sequence[str],
    b: Sequence[str],
    offset: int,
) -> list[DiffLine]:
    x, y = len(a), len(b)
    steps: list[DiffLine] = []
    for depth in range(len(trace) - 1, -1, -1):
        frontier = trace[depth]
        k = x - y
        if k == -depth or (k != depth and frontier[offset + k - 1] < frontier[offset + k + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1
        prev_x = frontier[offset + prev_k]
        prev_y = prev_x - prev_k
        while x > prev_x and y > prev_y:
            steps.append(DiffLine(DiffLineType.SAME, a[x - 1]))
            x -= 1
            y -= 1
        if depth > 0:
            if x == prev_x:
                steps.append(DiffLine(DiffLineType.ADDED, b[prev_y]))
            else:
                steps.append(DiffLine(DiffLineType.REMOVED, a[prev_x]))
        x, y = prev_x, prev_y
    steps.reverse()
    return steps


def _group_changes(lines: list[DiffLine]) -> list[DiffLine]:
    """Reorder each run of changes so removals precede additions."""
    grouped: list[DiffLine] = []
    removed: list[DiffLine] = []
    added: list[DiffLine] = []
    for line in lines:
        if line.type is DiffLineType.REMOVED:
            removed.append(line)
        elif line.type is DiffLineType.ADDED:
            added.append(line)
        else:
            grouped.extend(removed)
            grouped.extend(added)
            removed.clear()
            added.clear()
            grouped.append(line)
    grouped.extend(removed)
    grouped.extend(added)
    return grouped
