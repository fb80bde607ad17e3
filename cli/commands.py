"""CLI command handlers for Prompt Version Manager.

Updates:
  v0.33.0 - 2026-10-10 - Replace catalogue handlers with prompt version lifecycle commands.
  v0.32.0 - 2025-12-04 - Reuse shared payload helpers for JSON imports.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING

from core.diff import DiffLineType, compute_diff
from models.prompt_model import PromptContent

from .utils import format_stats, print_and_log, resolve_version

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from core.diff import PromptVersionDiff, SideBySideDiff
    from core.version_manager import VersionLifecycleManager
else:  # pragma: no cover - runtime placeholders for type-only imports
    VersionLifecycleManager = object

CommandHandler = Callable[[VersionLifecycleManager | None, argparse.Namespace, logging.Logger], int]


@dataclass(frozen=True)
class CommandSpec:
    """Metadata for dispatching CLI command handlers."""

    handler: CommandHandler
    requires_manager: bool = True


def _require_manager(manager: VersionLifecycleManager | None) -> VersionLifecycleManager:
    if manager is None:
        raise ValueError("Version manager is required for this command.")
    return manager


def _read_text_file(path: Path) -> str:
    try:
        return path.expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Unable to read {path}: {exc}") from exc


def _content_from_args(args: argparse.Namespace, base: PromptContent) -> PromptContent | None:
    """Return *base* with any content options from *args* applied, or ``None``."""
    system_prompt = getattr(args, "system_prompt", None)
    system_file = getattr(args, "system_file", None)
    if system_file is not None:
        system_prompt = _read_text_file(system_file)
    overrides = {
        "system_prompt": system_prompt,
        "user_template": getattr(args, "user_template", None),
        "model": getattr(args, "model", None),
        "temperature": getattr(args, "temperature", None),
        "max_tokens": getattr(args, "max_tokens", None),
    }
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return None
    return replace(base, **changes)


def _print_pane_diff(label: str, diff: SideBySideDiff) -> None:
    print(f"--- {label} (old)")
    for line in diff.old:
        marker = "-" if line.highlighted else " "
        print(f"{line.number:>4} {marker} {line.text}")
    print(f"+++ {label} (new)")
    for line in diff.new:
        marker = "+" if line.highlighted else " "
        print(f"{line.number:>4} {marker} {line.text}")


def _print_version_diff(diff: PromptVersionDiff, *, side_by_side: bool) -> None:
    base = diff.base_version
    target = diff.target_version
    print(
        f"v{base.version_number} -> v{target.version_number} "
        f"({format_stats(diff.stats)} system prompt lines)"
    )
    for name, change in diff.changed_fields.items():
        print(f"{name}: {change['from']} -> {change['to']}")
    if side_by_side:
        _print_pane_diff("system prompt", diff.system_prompt)
        if diff.user_template.stats.changed:
            _print_pane_diff("user template", diff.user_template)
        return
    if diff.body_diff:
        print(diff.body_diff)
    else:
        print("System prompt unchanged.")
    if diff.user_template.stats.changed:
        print("User template:")
        for line in compute_diff(base.user_template, target.user_template):
            marker = {
                DiffLineType.SAME: " ",
                DiffLineType.ADDED: "+",
                DiffLineType.REMOVED: "-",
            }[line.type]
            print(f"{marker}{line.text}")


# Prompt commands -------------------------------------------------------- #


def run_prompt_create(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Create a prompt and print its identifier."""
    manager = _require_manager(manager)
    content = _content_from_args(args, PromptContent()) or PromptContent()
    prompt = manager.create_prompt(
        args.title,
        content,
        description=args.description,
        category=args.category,
        tags=args.tags,
        created_by=args.author,
    )
    current = prompt.current_version
    number = current.version_number if current is not None else "?"
    print_and_log(logger, logging.INFO, f"Created prompt {prompt.id} (v{number})")
    return 0


def run_prompt_show(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Print a prompt's metadata and mirrored content."""
    manager = _require_manager(manager)
    prompt = manager.get_prompt(args.prompt_id)
    current = prompt.current_version
    lines = [
        f"{prompt.title} [{prompt.id}]",
        f"Current version: {current.version_number if current else 'n/a'}",
        f"Category: {prompt.category.value}  Status: {prompt.status.value}",
        f"Model: {prompt.model}  Temperature: {prompt.temperature}  "
        f"Max tokens: {prompt.max_tokens}",
    ]
    if prompt.tags:
        lines.append(f"Tags: {', '.join(prompt.tags)}")
    if prompt.description:
        lines.append(f"Description: {prompt.description}")
    lines.extend(["", "System prompt:", prompt.system_prompt or "(empty)"])
    if prompt.user_template:
        lines.extend(["", "User template:", prompt.user_template])
    print("\n".join(lines))
    return 0


def run_prompt_delete(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Delete a prompt with its history."""
    manager = _require_manager(manager)
    manager.delete_prompt(args.prompt_id)
    print_and_log(logger, logging.INFO, f"Deleted prompt {args.prompt_id}")
    return 0


# Version commands ------------------------------------------------------- #


def run_version_list(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Print active and soft-deleted versions, newest first."""
    manager = _require_manager(manager)
    history = manager.list_versions(args.prompt_id)
    print(f"{history.prompt.title} [{history.prompt.id}]")
    print("Active versions:")
    for entry in history.active:
        version = entry.version
        marker = "*" if entry.is_current else " "
        created = version.created_at.isoformat() if version.created_at else "unknown"
        stats = format_stats(entry.stats)
        note = f"  {version.change_note}" if version.change_note else ""
        print(f" {marker} v{version.version_number:<8} {created}  {stats:<10}{note}")
    if history.deleted:
        print("Deleted versions:")
        for entry in history.deleted:
            version = entry.version
            remaining = (
                f"{entry.days_until_purge} days left"
                if entry.days_until_purge is not None
                else "expiry unknown"
            )
            print(f"   v{version.version_number:<8} {remaining}")
    return 0


def run_version_create(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Snapshot the prompt content (optionally edited) as a new version."""
    manager = _require_manager(manager)
    prompt = manager.get_prompt(args.prompt_id)
    content = _content_from_args(args, prompt.content)
    version = manager.create_version(
        args.prompt_id,
        args.change_note,
        args.bump_kind,
        content=content,
        created_by=args.author,
    )
    print_and_log(logger, logging.INFO, f"Created version {version.version_number} ({version.id})")
    return 0


def run_version_restore(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Make a historical version current."""
    manager = _require_manager(manager)
    version = resolve_version(manager.get_prompt(args.prompt_id), args.version)
    manager.restore_version(args.prompt_id, version.id)
    print_and_log(logger, logging.INFO, f"Version {version.version_number} is now current")
    return 0


def run_version_delete(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Soft-delete a version."""
    manager = _require_manager(manager)
    version = resolve_version(manager.get_prompt(args.prompt_id), args.version)
    manager.delete_version(args.prompt_id, version.id)
    print_and_log(logger, logging.INFO, f"Deleted version {version.version_number}")
    return 0


def run_version_restore_deleted(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Return a soft-deleted version to the active history."""
    manager = _require_manager(manager)
    version = resolve_version(manager.get_prompt(args.prompt_id), args.version)
    manager.restore_deleted_version(args.prompt_id, version.id)
    print_and_log(logger, logging.INFO, f"Restored version {version.version_number}")
    return 0


def run_version_purge(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Permanently delete a version."""
    manager = _require_manager(manager)
    version = resolve_version(manager.get_prompt(args.prompt_id), args.version)
    manager.permanent_delete_version(args.prompt_id, version.id)
    print_and_log(logger, logging.INFO, f"Permanently deleted version {version.version_number}")
    return 0


def run_version_diff(
    manager: VersionLifecycleManager | None,
    args: argparse.Namespace,
    logger: logging.Logger,
) -> int:
    """Print the diff between two versions or against the previous version."""
    manager = _require_manager(manager)
    prompt = manager.get_prompt(args.prompt_id)
    target = resolve_version(prompt, args.target)
    if args.base:
        base = resolve_version(prompt, args.base)
        diff = manager.compare_versions(args.prompt_id, base.id, target.id)
    else:
        diff = manager.diff_against_baseline(args.prompt_id, target.id)
        if diff is None:
            print(f"Version {target.version_number} has no earlier version to compare with.")
            return 0
    _print_version_diff(diff, side_by_side=args.side_by_side)
    return 0


COMMAND_SPECS: dict[str | None, CommandSpec] = {
    "prompt-create": CommandSpec(run_prompt_create),
    "prompt-show": CommandSpec(run_prompt_show),
    "prompt-delete": CommandSpec(run_prompt_delete),
    "version-list": CommandSpec(run_version_list),
    "version-create": CommandSpec(run_version_create),
    "version-restore": CommandSpec(run_version_restore),
    "version-delete": CommandSpec(run_version_delete),
    "version-restore-deleted": CommandSpec(run_version_restore_deleted),
    "version-purge": CommandSpec(run_version_purge),
    "version-diff": CommandSpec(run_version_diff),
}


__all__ = ["CommandSpec", "COMMAND_SPECS"]
