"""Pytest configuration for shared test fixtures and environment hooks.

Updates:
  v0.2.0 - 2026-10-15 - Provide in-memory store and version manager fixtures with a fixed clock.
  v0.1.0 - 2025-12-10 - Shared pytest configuration hooks.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from core import InMemoryPromptStore, VersionLifecycleManager
from models.prompt_model import PromptContent

if TYPE_CHECKING:
    from collections.abc import Iterator

    from models.prompt_model import Prompt

FIXED_NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)

_ENV_KEYS = (
    "PROMPT_VERSIONS_STORE_BACKEND",
    "PROMPT_VERSIONS_BACKEND",
    "PROMPT_VERSIONS_DB_PATH",
    "PROMPT_VERSIONS_DATABASE_PATH",
    "PROMPT_VERSIONS_API_BASE_URL",
    "PROMPT_VERSIONS_API_URL",
    "PROMPT_VERSIONS_API_TOKEN",
    "PROMPT_VERSIONS_REQUEST_TIMEOUT_SECONDS",
    "PROMPT_VERSIONS_RETENTION_DAYS",
    "PROMPT_VERSIONS_DEFAULT_AUTHOR",
    "PROMPT_VERSIONS_LOG_LEVEL",
    "PROMPT_VERSIONS_CONFIG_JSON",
    "PROMPT_VERSIONS_ENV_FILE",
    "TRASH_RETENTION_DAYS",
)


class FixedClock:
    """Callable clock that only moves when a test advances it."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep developer shell settings out of configuration tests."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("PROMPT_VERSIONS_ENV_FILE", "")
    yield


@pytest.fixture()
def clock() -> FixedClock:
    """Return a clock pinned to a fixed instant."""
    return FixedClock()


@pytest.fixture()
def store() -> InMemoryPromptStore:
    """Return an empty in-memory record store."""
    return InMemoryPromptStore()


@pytest.fixture()
def manager(store: InMemoryPromptStore, clock: FixedClock) -> VersionLifecycleManager:
    """Return a lifecycle manager over the in-memory store."""
    return VersionLifecycleManager(store, clock=clock)


@pytest.fixture()
def prompt(manager: VersionLifecycleManager) -> Prompt:
    """Return a freshly created prompt holding only version 1.0."""
    return manager.create_prompt(
        "Support triage",
        PromptContent(system_prompt="You are helpful.\nAnswer briefly."),
    )
