"""Configuration helpers for Prompt Version Manager.

Updates: v0.3.0 - 2026-10-05 - Expose record store settings and backend names.
Updates: v0.2.0 - 2025-11-03 - Expose settings loader and configuration error types.
Updates: v0.1.0 - 2025-10-30 - Package scaffold.
"""

from .settings import (
    ENV_PREFIX,
    STORE_BACKENDS,
    PromptVersionsSettings,
    SettingsError,
    load_settings,
)

__all__ = [
    "ENV_PREFIX",
    "PromptVersionsSettings",
    "STORE_BACKENDS",
    "SettingsError",
    "load_settings",
]
