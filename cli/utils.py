"""Shared CLI utility functions for Prompt Version Manager commands.

Updates:
  v0.2.0 - 2026-10-10 - Add version reference resolution and diff stat formatting.
  v0.1.0 - 2025-12-04 - Extract stdout logging, masking, and path helpers.
"""

from __future__ import annotations

import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from core.exceptions import PromptVersionNotFoundError

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from logging import Logger

    from core.diff import DiffStats
    from models.prompt_model import Prompt, PromptVersion


def print_and_log(logger: Logger, level: int, message: str) -> None:
    """Log *message* at *level* and mirror it to stdout."""
    logger.log(level, message)
    print(message)


def mask_secret(value: str | None) -> str:
    """Return an obfuscated representation of secret configuration values."""
    if not value:
        return "not set"
    secret = value.strip()
    if len(secret) <= 6:
        return "set (****)"
    prefix = secret[:4]
    suffix = secret[-4:]
    return f"set ({prefix}...{suffix})"


def describe_path(
    path_value: object,
    *,
    expect_directory: bool,
    allow_missing_file: bool = False,
) -> str:
    """Return a human-friendly description of *path_value* suitability."""
    try:
        path = Path(path_value) if path_value is not None else None  # type: ignore[arg-type]
    except TypeError:
        path = None
    if path is None:
        return "not set"

    resolved = path.expanduser()
    if resolved.exists():
        if expect_directory and not resolved.is_dir():
            return f"{resolved} (exists but is not a directory)"
        if not expect_directory and resolved.is_dir():
            return f"{resolved} (exists but is a directory)"
        return f"{resolved} (exists)"

    message = f"{resolved} (missing)"
    if not expect_directory and allow_missing_file:
        message = f"{resolved} (missing - created on demand)"
    parent = resolved.parent
    if not parent.exists():
        message += f", parent missing: {parent}"
    return message


def resolve_version(prompt: Prompt, reference: str) -> PromptVersion:
    """Return the version matching *reference* (a UUID or a version number)."""
    text = reference.strip()
    try:
        version_id = uuid.UUID(text)
    except ValueError:
        for version in prompt.versions:
            if version.version_number == text:
                return version
    else:
        match = prompt.find_version(version_id)
        if match is not None:
            return match
    raise PromptVersionNotFoundError(f"Version {text} not found")


def format_stats(stats: DiffStats | None) -> str:
    """Return ``+added -removed`` text, or an empty string without a baseline."""
    if stats is None:
        return ""
    return f"+{stats.added} -{stats.removed}"
