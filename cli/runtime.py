"""Runtime boot helpers for Prompt Version Manager CLI.

Updates:
  v0.2.0 - 2026-10-06 - Apply the configured log level to the fallback handler.
  v0.1.0 - 2025-12-04 - Extract logging configuration helpers.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path


def setup_logging(logging_conf_path: Path | None, level: str | int = logging.INFO) -> None:
    """Configure logging using *logging_conf_path* when available."""
    path = logging_conf_path or Path("config/logging.conf")
    if path.exists():
        try:
            logging.config.fileConfig(path, disable_existing_loggers=False)
            return
        except (OSError, KeyError, ValueError, RuntimeError):  # pragma: no cover - fallback
            logging.getLogger(__name__).warning(
                "Invalid logging configuration %s; using defaults", path, exc_info=True
            )
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def apply_log_level(level: str | int) -> None:
    """Set the root logger level once settings are known."""
    logging.getLogger().setLevel(level)
