"""Application entry point for Prompt Version Manager.

Updates:
  v0.10.0 - 2026-10-10 - Dispatch prompt version lifecycle commands.
  v0.9.0 - 2025-12-04 - Modularise CLI parsing, commands, and runtime helpers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cli.commands import COMMAND_SPECS
from cli.parser import build_parser, parse_args
from cli.runtime import apply_log_level, setup_logging
from cli.settings_summary import print_settings_summary
from config import SettingsError, load_settings
from core import PromptManagerError, build_version_manager

if TYPE_CHECKING:  # pragma: no cover - typing helpers
    from collections.abc import Sequence

    from core import VersionLifecycleManager


def main(argv: Sequence[str] | None = None) -> int:
    """Entrypoint that wires settings, services, and CLI commands."""
    args = parse_args(argv)
    setup_logging(args.logging_config)

    logger = logging.getLogger("prompt_versions.main")
    try:
        settings = load_settings()
    except SettingsError as exc:
        logger.error("Failed to load settings: %s", exc)
        return 2
    apply_log_level(settings.log_level)

    if args.print_settings:
        print_settings_summary(settings)
        return 0

    command = getattr(args, "command", None)
    spec = COMMAND_SPECS.get(command)
    if spec is None:
        build_parser().print_help()
        return 0

    manager: VersionLifecycleManager | None = None
    try:
        if spec.requires_manager:
            manager = build_version_manager(settings)
        return spec.handler(manager, args, logger)
    except PromptManagerError as exc:
        logger.debug("Command failed", extra={"command": command, "error_kind": exc.kind.value})
        print(f"Error: {exc}")
        return 1
    except ValueError as exc:
        print(f"Error: {exc}")
        return 1
    finally:
        if manager is not None:
            manager.close()


if __name__ == "__main__":
    raise SystemExit(main())
