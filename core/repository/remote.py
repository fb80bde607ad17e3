"""HTTP record store talking to the prompt service REST API.

The service wraps every payload as ``{"success": true, "data": ...}`` and
reports failures as ``{"success": false, "error": "...", "code": "..."}``.
Version numbering and deletion timestamps are assigned server-side.

Updates:
  v0.1.2 - 2026-10-19 - Send requests through RequestRetrier and expose its counters.
  v0.1.1 - 2026-10-13 - Retry idempotent reads on transient transport failures.
  v0.1.0 - 2026-10-08 - Initial httpx-backed implementation of PromptRecordStore.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any, cast

import httpx

from models.prompt_model import Prompt, PromptVersion

from ..retry import RequestRetrier
from .base import RepositoryError, RepositoryNotFoundError, logger

if TYPE_CHECKING:  # pragma: no cover - typing helpers only
    from collections.abc import Mapping
    from datetime import datetime

    from models.prompt_model import BumpKind, PromptContent

    from ..retry import RetryCounters

__all__ = ["RemotePromptStore"]

_PAGE_SIZE = 100

_VERSION_FIELDS: dict[str, str] = {
    "id": "id",
    "promptId": "prompt_id",
    "versionNumber": "version_number",
    "systemPrompt": "system_prompt",
    "userTemplate": "user_template",
    "model": "model",
    "temperature": "temperature",
    "maxTokens": "max_tokens",
    "changeNote": "change_note",
    "createdAt": "created_at",
    "createdBy": "created_by",
    "deleted": "deleted",
    "deletedAt": "deleted_at",
}

_PROMPT_FIELDS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "description": "description",
    "category": "category",
    "systemPrompt": "system_prompt",
    "userTemplate": "user_template",
    "model": "model",
    "temperature": "temperature",
    "maxTokens": "max_tokens",
    "tags": "tags",
    "collectionId": "collection_id",
    "favorite": "favorite",
    "status": "status",
    "currentVersionId": "current_version_id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "createdBy": "created_by",
}


def _rename(payload: Mapping[str, Any], fields: Mapping[str, str]) -> dict[str, Any]:
    return {target: payload[source] for source, target in fields.items() if source in payload}


def version_from_payload(payload: Mapping[str, Any], prompt_id: uuid.UUID | str) -> PromptVersion:
    """Convert a camelCase version payload into a :class:`PromptVersion`."""
    record = _rename(payload, _VERSION_FIELDS)
    record.setdefault("prompt_id", str(prompt_id))
    return PromptVersion.from_record(record)


def prompt_from_payload(payload: Mapping[str, Any]) -> Prompt:
    """Convert a camelCase prompt payload into a :class:`Prompt`."""
    record = _rename(payload, _PROMPT_FIELDS)
    raw_versions = cast("list[Mapping[str, Any]]", payload.get("versions") or [])
    prompt = Prompt.from_record(record)
    prompt.versions = [version_from_payload(item, prompt.id) for item in raw_versions]
    return prompt


def content_to_payload(content: PromptContent) -> dict[str, Any]:
    """Return the camelCase body for a content update."""
    return {
        "systemPrompt": content.system_prompt,
        "userTemplate": content.user_template,
        "model": content.model,
        "temperature": content.temperature,
        "maxTokens": content.max_tokens,
    }


class RemotePromptStore:
    """Record store backed by the prompt service ``/prompts`` endpoints."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 15.0,
        client: httpx.Client | None = None,
        max_attempts: int = 3,
    ) -> None:
        """Create the store; pass *client* to reuse a configured httpx client."""
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = client or httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
        )
        if client is not None:
            self._client.headers.update(headers)
        self._retrier = RequestRetrier(self._client, max_attempts=max_attempts)

    @property
    def retry_counters(self) -> RetryCounters:
        """Request, retry, and transport-error totals for this store."""
        return self._retrier.counters

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self._client.close()

    # Prompt CRUD -------------------------------------------------------- #

    def list_prompts(self) -> list[Prompt]:
        """Return every prompt visible to the caller, with version history."""
        prompts: list[Prompt] = []
        page = 1
        while True:
            data = self._request(
                "GET",
                "/prompts",
                params={"page": page, "pageSize": _PAGE_SIZE},
            )
            items = cast("list[Mapping[str, Any]]", data.get("items") or [])
            for item in items:
                prompts.append(self.get_prompt(uuid.UUID(str(item["id"]))))
            total_pages = int(data.get("totalPages") or 1)
            if page >= total_pages or not items:
                return prompts
            page += 1

    def get_prompt(self, prompt_id: uuid.UUID) -> Prompt:
        """Fetch a prompt with its full version set."""
        data = self._request("GET", f"/prompts/{prompt_id}")
        return prompt_from_payload(data)

    def add_prompt(self, prompt: Prompt) -> Prompt:
        """Create a prompt server-side; the service assigns identifiers."""
        body: dict[str, Any] = {
            "title": prompt.title,
            "description": prompt.description,
            "category": prompt.category.value,
            "collectionId": prompt.collection_id,
            "tags": list(prompt.tags),
            **content_to_payload(prompt.content),
        }
        data = self._request("POST", "/prompts", json=body)
        return prompt_from_payload(data)

    def delete_prompt(self, prompt_id: uuid.UUID) -> None:
        """Permanently delete a prompt."""
        self._request("DELETE", f"/prompts/{prompt_id}/permanent")

    # Version lifecycle -------------------------------------------------- #

    def create_version(
        self,
        prompt_id: uuid.UUID,
        *,
        change_note: str,
        bump_kind: BumpKind,
        created_by: str | None = None,
        content: PromptContent | None = None,
    ) -> PromptVersion:
        """Save pending *content* (if any), then snapshot it as a new version."""
        if content is not None:
            self._request("PATCH", f"/prompts/{prompt_id}", json=content_to_payload(content))
        data = self._request(
            "POST",
            f"/prompts/{prompt_id}/versions",
            json={"changeNote": change_note, "versionType": bump_kind.value},
        )
        return version_from_payload(data, prompt_id)

    def restore_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> Prompt:
        """Make *version_id* current and return the refreshed prompt."""
        data = self._request("POST", f"/prompts/{prompt_id}/versions/{version_id}/restore")
        return prompt_from_payload(data)

    def soft_delete_version(
        self,
        prompt_id: uuid.UUID,
        version_id: uuid.UUID,
        *,
        deleted_at: datetime,
    ) -> None:
        """Soft-delete a version; the service records its own timestamp."""
        del deleted_at
        self._request("DELETE", f"/prompts/{prompt_id}/versions/{version_id}")

    def restore_soft_deleted_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Clear the soft-delete flags on a version."""
        self._request("POST", f"/prompts/{prompt_id}/versions/{version_id}/restore-deleted")

    def hard_delete_version(self, prompt_id: uuid.UUID, version_id: uuid.UUID) -> None:
        """Remove a version permanently."""
        self._request("DELETE", f"/prompts/{prompt_id}/versions/{version_id}/permanent")

    # Transport ---------------------------------------------------------- #

    def _request(
        self,
        method: str,
        path: str,
        *,
        json: Mapping[str, Any] | None = None,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = self._retrier.send(method, path, json=json, params=params)
        except httpx.HTTPStatusError as exc:
            message = _error_message(exc.response)
            logger.warning(
                "Prompt service rejected request",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": exc.response.status_code,
                },
            )
            if exc.response.status_code == httpx.codes.NOT_FOUND:
                raise RepositoryNotFoundError(message) from exc
            raise RepositoryError(message) from exc
        except httpx.HTTPError as exc:
            raise RepositoryError(f"Unable to reach prompt service: {exc}") from exc
        return _unwrap(response)


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"Prompt service returned HTTP {response.status_code}"
    if isinstance(payload, dict):
        body = cast("dict[str, Any]", payload)
        message = body.get("error") or body.get("message")
        if message:
            return str(message)
    return f"Prompt service returned HTTP {response.status_code}"


def _unwrap(response: httpx.Response) -> dict[str, Any]:
    if response.status_code == httpx.codes.NO_CONTENT or not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError as exc:
        raise RepositoryError("Prompt service returned an invalid response.") from exc
    if not isinstance(payload, dict):
        raise RepositoryError("Prompt service returned an unexpected payload.")
    body = cast("dict[str, Any]", payload)
    if not body.get("success", False):
        raise RepositoryError(str(body.get("error") or "Prompt service request failed."))
    data = body.get("data")
    if isinstance(data, dict):
        return cast("dict[str, Any]", data)
    return {}
