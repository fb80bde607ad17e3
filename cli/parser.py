"""Argument parser for Prompt Version Manager CLI.

Updates:
  v0.4.0 - 2026-10-10 - Replace catalogue commands with prompt version lifecycle commands.
  v0.3.0 - 2025-12-05 - Add toggle flags.
"""

from __future__ import annotations

import argparse
import uuid
from pathlib import Path
from typing import TYPE_CHECKING

from models.prompt_model import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    BumpKind,
    PromptCategory,
)

if TYPE_CHECKING:
    from collections.abc import Sequence


def _add_content_arguments(parser: argparse.ArgumentParser, *, with_defaults: bool) -> None:
    """Register prompt content options shared by create commands."""
    system_group = parser.add_mutually_exclusive_group()
    system_group.add_argument("--system", dest="system_prompt", help="System prompt text.")
    system_group.add_argument(
        "--system-file",
        type=Path,
        default=None,
        help="Read the system prompt from a UTF-8 text file.",
    )
    parser.add_argument("--user-template", default=None, help="User message template text.")
    parser.add_argument(
        "--model",
        default=DEFAULT_MODEL if with_defaults else None,
        help=f"Model identifier (default: {DEFAULT_MODEL}).",
    )
    parser.add_argument(
        "--temperature",
        type=float,
        default=DEFAULT_TEMPERATURE if with_defaults else None,
        help=f"Sampling temperature (default: {DEFAULT_TEMPERATURE}).",
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=DEFAULT_MAX_TOKENS if with_defaults else None,
        help=f"Maximum completion tokens (default: {DEFAULT_MAX_TOKENS}).",
    )


def _add_version_target(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("prompt_id", type=uuid.UUID, help="Prompt identifier.")
    parser.add_argument("version", help="Version identifier or number (e.g. 1.2).")


def build_parser() -> argparse.ArgumentParser:
    """Return the configured top-level argument parser."""
    parser = argparse.ArgumentParser(description="Prompt Version Manager")
    parser.add_argument(
        "--logging-config",
        type=Path,
        default=None,
        help="Path to logging configuration file (INI format)",
    )
    parser.add_argument(
        "--print-settings",
        action="store_true",
        help="Print resolved settings and exit",
    )

    subparsers = parser.add_subparsers(dest="command")

    create_parser = subparsers.add_parser(
        "prompt-create",
        help="Create a prompt with an initial 1.0 version.",
    )
    create_parser.add_argument("title", help="Prompt title.")
    create_parser.add_argument("--description", default="", help="Prompt description.")
    create_parser.add_argument(
        "--category",
        choices=[category.value for category in PromptCategory],
        default=PromptCategory.TEXT.value,
        help="Prompt media category (default: text).",
    )
    create_parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        default=None,
        help="Tag to attach (repeatable).",
    )
    create_parser.add_argument("--author", default=None, help="Author recorded on the prompt.")
    _add_content_arguments(create_parser, with_defaults=True)

    show_parser = subparsers.add_parser("prompt-show", help="Show a prompt and its content.")
    show_parser.add_argument("prompt_id", type=uuid.UUID, help="Prompt identifier.")

    delete_parser = subparsers.add_parser(
        "prompt-delete",
        help="Delete a prompt with its entire history.",
    )
    delete_parser.add_argument("prompt_id", type=uuid.UUID, help="Prompt identifier.")

    list_parser = subparsers.add_parser(
        "version-list",
        help="List active and soft-deleted versions, newest first.",
    )
    list_parser.add_argument("prompt_id", type=uuid.UUID, help="Prompt identifier.")

    version_create_parser = subparsers.add_parser(
        "version-create",
        help="Snapshot the prompt content as a new current version.",
    )
    version_create_parser.add_argument("prompt_id", type=uuid.UUID, help="Prompt identifier.")
    version_create_parser.add_argument(
        "-m",
        "--note",
        dest="change_note",
        default="",
        help="Change note (max 500 characters).",
    )
    version_create_parser.add_argument(
        "--type",
        dest="bump_kind",
        choices=[kind.value for kind in BumpKind],
        default=BumpKind.MINOR.value,
        help="Version bump (default: minor).",
    )
    version_create_parser.add_argument(
        "--author",
        default=None,
        help="Author recorded on the version.",
    )
    _add_content_arguments(version_create_parser, with_defaults=False)

    for name, help_text in (
        ("version-restore", "Make an existing version current again."),
        ("version-delete", "Soft-delete a non-current version."),
        ("version-restore-deleted", "Return a soft-deleted version to the history."),
        ("version-purge", "Permanently delete a non-current version."),
    ):
        _add_version_target(subparsers.add_parser(name, help=help_text))

    diff_parser = subparsers.add_parser(
        "version-diff",
        help="Compare two versions, or a version against its predecessor.",
    )
    diff_parser.add_argument("prompt_id", type=uuid.UUID, help="Prompt identifier.")
    diff_parser.add_argument("target", help="Version to inspect (identifier or number).")
    diff_parser.add_argument(
        "--against",
        dest="base",
        default=None,
        help="Baseline version (defaults to the next-older active version).",
    )
    diff_parser.add_argument(
        "--side-by-side",
        action="store_true",
        help="Render old and new panes instead of a unified diff.",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed CLI arguments for the Prompt Version Manager."""
    return build_parser().parse_args(argv)
