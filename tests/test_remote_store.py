"""Tests for the HTTP-backed prompt record store.

Updates:
  v0.1.2 - 2026-10-19 - Cover retry logging, counters, and give-up behaviour.
  v0.1.1 - 2026-10-13 - Cover retries for idempotent reads only.
  v0.1.0 - 2026-10-08 - Cover envelope parsing, routes, and error mapping.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from core import PromptNotFoundError, PromptVersionNotFoundError, VersionLifecycleManager
from core.repository import RemotePromptStore, RepositoryError, RepositoryNotFoundError
from core.repository.remote import prompt_from_payload
from core.retry import backoff_delay
from models.prompt_model import BumpKind, Prompt, PromptContent

_PROMPT_ID = uuid.uuid4()
_V1_ID = uuid.uuid4()
_V2_ID = uuid.uuid4()


def _version_payload(version_id: uuid.UUID, number: str, text: str, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": str(version_id),
        "promptId": str(_PROMPT_ID),
        "versionNumber": number,
        "systemPrompt": text,
        "userTemplate": "",
        "model": "gpt-4o",
        "temperature": 0.3,
        "maxTokens": 1024,
        "changeNote": f"note {number}",
        "createdAt": "2026-02-01T10:00:00Z",
        "createdBy": "ana",
        "deleted": False,
        "deletedAt": None,
    }
    payload.update(extra)
    return payload


def _prompt_payload(current: uuid.UUID = _V2_ID) -> dict[str, Any]:
    versions = [
        _version_payload(_V1_ID, "1.0", "first"),
        _version_payload(_V2_ID, "1.1", "second", createdAt="2026-02-02T10:00:00Z"),
    ]
    mirrored = next(item for item in versions if item["id"] == str(current))
    return {
        "id": str(_PROMPT_ID),
        "title": "Remote prompt",
        "description": "",
        "category": "text",
        "systemPrompt": mirrored["systemPrompt"],
        "userTemplate": "",
        "model": "gpt-4o",
        "temperature": 0.3,
        "maxTokens": 1024,
        "tags": ["ops"],
        "currentVersionId": str(current),
        "createdAt": "2026-02-01T10:00:00Z",
        "updatedAt": "2026-02-02T10:00:00Z",
        "versions": versions,
    }


def _ok(data: Any, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, json={"success": True, "data": data})


def _store(handler: Any) -> RemotePromptStore:
    client = httpx.Client(
        base_url="https://prompts.example.test/api",
        transport=httpx.MockTransport(handler),
    )
    return RemotePromptStore("https://prompts.example.test/api", token="secret", client=client)


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    """Skip backoff delays between retried requests."""
    monkeypatch.setattr("core.retry.time.sleep", lambda _seconds: None)


def test_prompt_from_payload_maps_camel_case() -> None:
    """Service payloads hydrate the prompt aggregate and its versions."""
    prompt = prompt_from_payload(_prompt_payload())

    assert prompt.id == _PROMPT_ID
    assert prompt.current_version_id == _V2_ID
    assert prompt.system_prompt == "second"
    assert prompt.tags == ["ops"]
    assert [version.version_number for version in prompt.versions] == ["1.0", "1.1"]
    first = prompt.versions[0]
    assert first.prompt_id == _PROMPT_ID
    assert first.max_tokens == 1024
    assert first.created_at == datetime(2026, 2, 1, 10, 0, tzinfo=UTC)


def test_get_prompt_sends_bearer_token() -> None:
    """Requests carry the configured token and unwrap the envelope."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok(_prompt_payload())

    prompt = _store(handler).get_prompt(_PROMPT_ID)

    assert prompt.title == "Remote prompt"
    assert seen[0].url.path == f"/api/prompts/{_PROMPT_ID}"
    assert seen[0].headers["Authorization"] == "Bearer secret"


def test_list_prompts_pages_through_results() -> None:
    """Listing follows totalPages and loads each prompt in full."""
    pages: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/prompts":
            page = request.url.params.get("page")
            pages.append(page)
            items = [{"id": str(_PROMPT_ID)}] if page == "1" else []
            return _ok({"items": items, "totalPages": 2})
        return _ok(_prompt_payload())

    prompts = _store(handler).list_prompts()

    assert pages == ["1", "2"]
    assert [prompt.id for prompt in prompts] == [_PROMPT_ID]


def test_create_version_patches_content_first() -> None:
    """Pending content is saved before the version snapshot is requested."""
    requests: list[tuple[str, str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        requests.append((request.method, request.url.path, body))
        if request.method == "PATCH":
            return _ok(_prompt_payload())
        return _ok(_version_payload(uuid.uuid4(), "2.0", "third"), status_code=201)

    version = _store(handler).create_version(
        _PROMPT_ID,
        change_note="rewrite",
        bump_kind=BumpKind.MAJOR,
        content=PromptContent(system_prompt="third", model="gpt-4o"),
    )

    assert version.version_number == "2.0"
    assert [(method, path) for method, path, _ in requests] == [
        ("PATCH", f"/api/prompts/{_PROMPT_ID}"),
        ("POST", f"/api/prompts/{_PROMPT_ID}/versions"),
    ]
    assert requests[0][2]["systemPrompt"] == "third"
    assert requests[1][2] == {"changeNote": "rewrite", "versionType": "major"}


def test_version_lifecycle_routes() -> None:
    """Restore, soft delete, undelete, and purge hit their endpoints."""
    calls: list[tuple[str, str]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        if request.url.path.endswith("/restore"):
            return _ok(_prompt_payload(current=_V1_ID))
        return _ok({})

    store = _store(handler)
    restored = store.restore_version(_PROMPT_ID, _V1_ID)
    store.soft_delete_version(_PROMPT_ID, _V2_ID, deleted_at=datetime.now(UTC))
    store.restore_soft_deleted_version(_PROMPT_ID, _V2_ID)
    store.hard_delete_version(_PROMPT_ID, _V2_ID)

    base = f"/api/prompts/{_PROMPT_ID}/versions"
    assert restored.current_version_id == _V1_ID
    assert calls == [
        ("POST", f"{base}/{_V1_ID}/restore"),
        ("DELETE", f"{base}/{_V2_ID}"),
        ("POST", f"{base}/{_V2_ID}/restore-deleted"),
        ("DELETE", f"{base}/{_V2_ID}/permanent"),
    ]


def test_not_found_maps_to_repository_not_found() -> None:
    """HTTP 404 responses raise RepositoryNotFoundError with the service message."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"success": False, "error": "Version not found"})

    with pytest.raises(RepositoryNotFoundError, match="Version not found"):
        _store(handler).hard_delete_version(_PROMPT_ID, _V2_ID)


def test_unsuccessful_envelope_raises() -> None:
    """A 200 response flagged as unsuccessful is still an error."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"success": False, "error": "Quota exceeded"})

    with pytest.raises(RepositoryError, match="Quota exceeded"):
        _store(handler).get_prompt(_PROMPT_ID)


def test_reads_retry_transient_failures() -> None:
    """GET requests are retried after 5xx responses."""
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) < 3:
            return httpx.Response(503, json={"success": False, "error": "busy"})
        return _ok(_prompt_payload())

    store = _store(handler)
    prompt = store.get_prompt(_PROMPT_ID)

    assert prompt.id == _PROMPT_ID
    assert len(attempts) == 3
    assert store.retry_counters.requests == 3
    assert store.retry_counters.retries == 2
    assert store.retry_counters.transport_errors == 0


def test_read_retries_are_logged_and_counted(caplog: pytest.LogCaptureFixture) -> None:
    """Dropped connections on GET are retried, logged per attempt, and counted."""
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) == 1:
            raise httpx.ConnectError("connection reset", request=request)
        return _ok(_prompt_payload())

    store = _store(handler)
    with caplog.at_level(logging.INFO, logger="prompt_versions.repository"):
        store.get_prompt(_PROMPT_ID)

    retried = [r for r in caplog.records if r.getMessage() == "Retrying prompt service request"]
    assert len(retried) == 1
    assert retried[0].method == "GET"  # type: ignore[attr-defined]
    assert retried[0].path == f"/prompts/{_PROMPT_ID}"  # type: ignore[attr-defined]
    assert retried[0].attempt == 1  # type: ignore[attr-defined]
    assert store.retry_counters.transport_errors == 1
    assert store.retry_counters.requests == 2


def test_reads_give_up_after_max_attempts() -> None:
    """Persistent transport failures on GET surface after the final attempt."""
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        raise httpx.ReadTimeout("slow", request=request)

    store = _store(handler)
    with pytest.raises(RepositoryError, match="Unable to reach prompt service"):
        store.get_prompt(_PROMPT_ID)
    assert len(attempts) == 3
    assert store.retry_counters.transport_errors == 3


def test_missing_resources_are_not_retried() -> None:
    """A 404 on a read is final."""
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(404, json={"success": False, "error": "Prompt not found"})

    with pytest.raises(RepositoryNotFoundError):
        _store(handler).get_prompt(_PROMPT_ID)
    assert len(attempts) == 1


def test_backoff_delay_doubles_up_to_cap() -> None:
    assert backoff_delay(1, base_seconds=0.5, cap_seconds=4.0, jitter_fraction=0) == 0.5
    assert backoff_delay(3, base_seconds=0.5, cap_seconds=4.0, jitter_fraction=0) == 2.0
    assert backoff_delay(6, base_seconds=0.5, cap_seconds=4.0, jitter_fraction=0) == 4.0
    assert backoff_delay(2, base_seconds=0, cap_seconds=4.0, jitter_fraction=0.5) == 0.0
    assert 1.0 <= backoff_delay(2, base_seconds=0.5, cap_seconds=4.0, jitter_fraction=0.1) <= 1.1


def test_writes_are_not_retried() -> None:
    """Mutating requests fail on the first transient error."""
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        return httpx.Response(503, json={"success": False, "error": "busy"})

    with pytest.raises(RepositoryError, match="busy"):
        _store(handler).restore_soft_deleted_version(_PROMPT_ID, _V2_ID)
    assert len(attempts) == 1


def test_transport_errors_are_wrapped() -> None:
    """Connection failures surface as RepositoryError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RepositoryError, match="Unable to reach prompt service"):
        _store(handler).delete_prompt(_PROMPT_ID)


def test_manager_maps_remote_not_found() -> None:
    """The manager translates remote 404s into typed not-found errors."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return _ok(_prompt_payload())
        if request.url.path.endswith(f"/{_PROMPT_ID}/permanent"):
            return httpx.Response(404, json={"success": False, "error": "Prompt not found"})
        return httpx.Response(404, json={"success": False, "error": "Version not found"})

    manager = VersionLifecycleManager(_store(handler))

    with pytest.raises(PromptVersionNotFoundError):
        manager.permanent_delete_version(_PROMPT_ID, _V1_ID)
    with pytest.raises(PromptNotFoundError):
        manager.delete_prompt(_PROMPT_ID)


def test_add_prompt_uses_server_identifiers() -> None:
    """The created prompt reflects the identifiers assigned by the service."""
    captured: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured.update(json.loads(request.content))
        return _ok(_prompt_payload(current=_V1_ID), status_code=201)

    draft = Prompt.create("Remote prompt", PromptContent(system_prompt="first"), tags=["ops"])

    stored = _store(handler).add_prompt(draft)

    assert stored.id == _PROMPT_ID
    assert captured["title"] == "Remote prompt"
    assert captured["systemPrompt"] == "first"
    assert captured["tags"] == ["ops"]
