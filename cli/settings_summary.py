"""Printable summaries for Prompt Version Manager configuration.

Updates:
  v0.2.0 - 2026-10-06 - Summarise record store, API, and retention settings.
  v0.1.0 - 2025-12-04 - Extract CLI settings summary rendering.
"""

from __future__ import annotations

from config import PromptVersionsSettings

from .utils import describe_path, mask_secret


def print_settings_summary(settings: PromptVersionsSettings) -> None:
    """Emit a readable summary of core configuration."""
    db_path_desc = describe_path(
        settings.db_path,
        expect_directory=False,
        allow_missing_file=True,
    )
    lines = [
        "Prompt Version Manager configuration summary",
        "--------------------------------------------",
        f"Store backend: {settings.store_backend}",
        f"Database path: {db_path_desc}",
        f"API base URL: {settings.api_base_url or 'not set'}",
        f"API token: {mask_secret(settings.api_token)}",
        f"Request timeout (seconds): {settings.request_timeout_seconds}",
        "",
        "Version history",
        "---------------",
        f"Retention window (days): {settings.retention_days}",
        f"Default author: {settings.default_author or 'not set'}",
        f"Log level: {settings.log_level}",
    ]
    print("\n".join(lines))
