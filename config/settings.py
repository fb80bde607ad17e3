"""Settings management utilities for Prompt Version Manager configuration.

Updates:
  v0.6.1 - 2026-10-14 - Accept the legacy TRASH_RETENTION_DAYS variable for the purge countdown.
  v0.6.0 - 2026-10-05 - Replace workspace settings with record store and retention options.
  v0.5.9 - 2025-12-05 - Tighten dotenv helpers for lint compliance.
  v0.5.7 - 2025-12-04 - Load .env secrets so API keys persist like environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal, cast

from dotenv import dotenv_values
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from core.retention import DEFAULT_RETENTION_DAYS

_DOTENV_FALLBACK_PATH = ".env"

ENV_PREFIX = "PROMPT_VERSIONS_"

STORE_BACKENDS: tuple[str, ...] = ("memory", "sqlite", "remote")

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}

# Field name -> accepted environment keys (prefixed unless noted below).
_ENV_ALIASES: dict[str, list[str]] = {
    "store_backend": ["STORE_BACKEND", "store_backend", "BACKEND"],
    "db_path": ["DB_PATH", "DATABASE_PATH", "db_path", "database_path"],
    "api_base_url": ["API_BASE_URL", "API_URL", "api_base_url"],
    "api_token": ["API_TOKEN", "api_token"],
    "request_timeout_seconds": ["REQUEST_TIMEOUT_SECONDS", "request_timeout_seconds"],
    "retention_days": ["RETENTION_DAYS", "retention_days"],
    "default_author": ["DEFAULT_AUTHOR", "default_author"],
    "log_level": ["LOG_LEVEL", "log_level"],
}

# Keys also honoured without the prefix.
_UNPREFIXED_ALIASES: dict[str, list[str]] = {
    "retention_days": ["TRASH_RETENTION_DAYS"],
}

_JSON_KEYS: tuple[str, ...] = (
    "store_backend",
    "db_path",
    "api_base_url",
    "request_timeout_seconds",
    "retention_days",
    "default_author",
    "log_level",
)

_SECRET_KEYS = {"api_token", "API_TOKEN"}


def _read_dotenv_values() -> dict[str, str]:
    """Load ``.env`` entries into a mapping without mutating ``os.environ``."""
    env_file_override = os.getenv(f"{ENV_PREFIX}ENV_FILE")
    if env_file_override is not None:
        candidate = env_file_override.strip()
        if not candidate:
            return {}
        path = Path(candidate).expanduser()
    else:
        path = Path(_DOTENV_FALLBACK_PATH).expanduser()
    if not path.is_file():
        return {}
    raw_values = dotenv_values(str(path))
    return {str(key): str(value) for key, value in raw_values.items() if value is not None}


class SettingsError(Exception):
    """Raised when Prompt Version Manager configuration cannot be loaded or validated."""


class PromptVersionsSettings(BaseSettings):
    """Application configuration sourced from environment variables or JSON files."""

    store_backend: Literal["memory", "sqlite", "remote"] = Field(
        default="sqlite",
        description="Record store used for prompts and versions.",
    )
    db_path: Path = Field(default=Path("data") / "prompt_versions.db")
    api_base_url: str | None = Field(
        default=None,
        description="Base URL of the prompt service API (required for the remote store).",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token sent to the prompt service.",
        repr=False,
    )
    request_timeout_seconds: float = Field(default=15.0)
    retention_days: int = Field(
        default=DEFAULT_RETENTION_DAYS,
        description="Days a soft-deleted version is shown as recoverable.",
    )
    default_author: str | None = Field(
        default=None,
        description="Author recorded on versions when the caller does not supply one.",
    )
    log_level: str = Field(default="INFO")

    model_config = cast(
        "SettingsConfigDict",
        {
            "env_prefix": ENV_PREFIX,
            "case_sensitive": False,
            "populate_by_name": True,
        },
    )

    @field_validator("store_backend", mode="before")
    def _normalise_backend(cls, value: Any) -> str:
        """Lower-case backend names before validation."""
        if value is None:
            return "sqlite"
        return str(value).strip().lower() or "sqlite"

    @field_validator("db_path", mode="before")
    def _normalise_path(cls, value: Any) -> Path:
        """Expand user-relative paths and coerce values to Path instances."""
        if value is None:
            raise ValueError("a filesystem path is required")
        path = Path(str(value)).expanduser()
        return path.resolve()

    @field_validator("api_base_url", "api_token", "default_author", mode="before")
    def _strip_strings(cls, value: str | None) -> str | None:
        """Normalise optional strings by stripping whitespace and empty values."""
        if value is None:
            return None
        stripped = str(value).strip()
        return stripped or None

    @field_validator("request_timeout_seconds")
    def _validate_timeout(cls, value: float) -> float:
        """Ensure the request timeout is positive."""
        if value <= 0:
            raise ValueError("request_timeout_seconds must be greater than zero")
        return value

    @field_validator("retention_days")
    def _validate_retention(cls, value: int) -> int:
        """Ensure the retention window is a positive number of days."""
        if value <= 0:
            raise ValueError("retention_days must be greater than zero")
        return value

    @field_validator("log_level", mode="before")
    def _normalise_log_level(cls, value: Any) -> str:
        """Accept case-insensitive standard logging level names."""
        level = str(value or "INFO").strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(sorted(_LOG_LEVELS))}")
        return level

    @model_validator(mode="after")
    def _validate_remote_configuration(self) -> PromptVersionsSettings:
        """Require an API base URL when the remote store is selected."""
        if self.store_backend == "remote" and not self.api_base_url:
            raise ValueError("api_base_url is required when store_backend is 'remote'")
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
        PydanticBaseSettingsSource,
    ]:
        """Define configuration source precedence.

        Order (highest → lowest):
            1. Explicit keyword arguments (e.g. load_settings(store_backend="memory")).
            2. JSON configuration file.
            3. Environment variables / aliases, then ``.env`` values.
            4. File secrets.
        """

        def env_with_aliases(_: BaseSettings | None = None) -> dict[str, Any]:
            data: dict[str, Any] = {}
            dotenv_data = _read_dotenv_values()

            def _lookup(candidate: str) -> str | None:
                value = os.getenv(candidate)
                if value is None:
                    value = dotenv_data.get(candidate)
                if value is None:
                    return None
                stripped_value = str(value).strip()
                return stripped_value or None

            for field, keys in _ENV_ALIASES.items():
                candidates: list[str] = []
                for key in keys:
                    candidates.extend([f"{ENV_PREFIX}{key}", f"{ENV_PREFIX}{key.upper()}"])
                candidates.extend(_UNPREFIXED_ALIASES.get(field, []))
                for candidate in candidates:
                    val = _lookup(candidate)
                    if val is not None:
                        data[field] = val
                        break
            return data

        return (
            init_settings,
            cls._json_config_settings_source(settings_cls),
            cast("PydanticBaseSettingsSource", env_with_aliases),
            file_secret_settings,
        )

    @classmethod
    def _json_config_settings_source(
        cls,
        _: type[BaseSettings],
    ) -> PydanticBaseSettingsSource:
        """Return settings extracted from an optional JSON config file."""

        def _loader(_: BaseSettings | None = None) -> dict[str, Any]:
            explicit_path = os.getenv(f"{ENV_PREFIX}CONFIG_JSON")
            candidates: list[Path] = []
            if explicit_path:
                candidates.append(Path(explicit_path).expanduser())
            candidates.append((Path("config") / "config.json").expanduser())

            for index, path in enumerate(candidates):
                if not path.exists():
                    if explicit_path and index == 0:
                        raise SettingsError(f"Configuration file not found: {path}")
                    continue
                try:
                    raw_contents = path.read_text(encoding="utf-8")
                except OSError as exc:  # pragma: no cover - filesystem failure is env-specific
                    raise SettingsError(f"Unable to read configuration file: {path}") from exc
                try:
                    data = json.loads(raw_contents)
                except json.JSONDecodeError as exc:
                    raise SettingsError(f"Invalid JSON in configuration file: {path}") from exc
                if not isinstance(data, dict):
                    message = f"Configuration file {path} must contain a JSON object"
                    raise SettingsError(message)
                mapping_data = cast("Mapping[object, Any]", data)
                data_dict: dict[str, Any] = {str(key): value for key, value in mapping_data.items()}
                removed_secrets = [
                    key
                    for key in sorted(_SECRET_KEYS)
                    if key in data_dict and data_dict.pop(key, None) is not None
                ]
                if removed_secrets:
                    logger.warning(
                        "Ignoring secret key(s) %s in configuration file %s; "
                        "set credentials via environment variables instead.",
                        ", ".join(removed_secrets),
                        path,
                    )
                mapped: dict[str, Any] = {}
                if "database_path" in data_dict and "db_path" not in data_dict:
                    mapped["db_path"] = data_dict["database_path"]
                for key in _JSON_KEYS:
                    if key in data_dict:
                        mapped[key] = data_dict[key]
                return mapped
            return {}

        return cast("PydanticBaseSettingsSource", _loader)


def load_settings(**overrides: Any) -> PromptVersionsSettings:
    """Return validated settings, raising SettingsError on failure."""
    try:
        return PromptVersionsSettings(**overrides)
    except SettingsError:
        raise
    except ValidationError as exc:
        raise SettingsError(f"Invalid Prompt Version Manager configuration: {exc}") from exc


logger = logging.getLogger("prompt_versions.settings")
