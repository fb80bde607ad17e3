"""Prompt aggregate and version snapshot definitions.

Updates:
  v0.3.0 - 2026-10-12 - Track retired version numbers so purged numbers are never reused.
  v0.2.1 - 2026-10-09 - Tolerate unparseable version timestamps from remote payloads.
  v0.2.0 - 2026-10-06 - Return new aggregates from lifecycle transitions instead of mutating.
  v0.1.0 - 2026-10-02 - Prompt/PromptVersion dataclasses with mirrored content fields.
"""
from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

INITIAL_VERSION_NUMBER = "1.0"
INITIAL_CHANGE_NOTE = "Initial creation"
DEFAULT_MODEL = "gpt-4-turbo"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 2048

# Fields mirrored from the current version onto the prompt.
CONTENT_FIELDS: tuple[str, ...] = (
    "system_prompt",
    "user_template",
    "model",
    "temperature",
    "max_tokens",
)


def _utc_now() -> datetime:
    """Return an aware UTC timestamp."""
    return datetime.now(UTC)


def _ensure_uuid(value: Any) -> uuid.UUID:
    """Parse arbitrary UUID representations into a uuid.UUID instance."""
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _ensure_datetime(value: Any) -> datetime:
    """Parse incoming datetime values (isoformat strings or datetime)."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if value is None:
        return _utc_now()
    text = str(value).strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    parsed = datetime.fromisoformat(text)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _optional_datetime(value: Any) -> datetime | None:
    """Return a parsed datetime or ``None`` when missing or unparseable."""
    if value in (None, ""):
        return None
    try:
        return _ensure_datetime(value)
    except ValueError:
        return None


def _serialize_list(items: Iterable[Any] | None) -> list[str]:
    """Normalize iterable inputs into lists of strings."""
    if items is None:
        return []
    if isinstance(items, str):
        return [items]
    return [str(item) for item in items]


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class BumpKind(str, Enum):
    """Select how the next version number is derived."""

    MAJOR = "major"
    MINOR = "minor"

    @classmethod
    def parse(cls, value: BumpKind | str | None) -> BumpKind:
        """Return the bump kind for *value*, defaulting to ``minor``."""
        if isinstance(value, BumpKind):
            return value
        text = (value or "").strip().lower()
        if not text:
            return cls.MINOR
        return cls(text)


class PromptStatus(str, Enum):
    """Enumerate prompt visibility states."""

    ACTIVE = "active"
    ARCHIVED = "archived"
    TRASH = "trash"


class PromptCategory(str, Enum):
    """Enumerate the media category a prompt targets."""

    TEXT = "text"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


@dataclass(slots=True, frozen=True)
class PromptContent:
    """Content snapshot shared by a prompt and its versions."""

    system_prompt: str = ""
    user_template: str = ""
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS

    def to_record(self) -> dict[str, Any]:
        """Return a plain dictionary representation."""
        return {name: getattr(self, name) for name in CONTENT_FIELDS}

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> PromptContent:
        """Create content from a mapping, applying defaults for missing keys."""
        temperature = data.get("temperature")
        max_tokens = data.get("max_tokens")
        return cls(
            system_prompt=str(data.get("system_prompt") or ""),
            user_template=str(data.get("user_template") or ""),
            model=str(data.get("model") or DEFAULT_MODEL),
            temperature=float(temperature) if temperature is not None else DEFAULT_TEMPERATURE,
            max_tokens=int(max_tokens) if max_tokens is not None else DEFAULT_MAX_TOKENS,
        )


@dataclass(slots=True)
class PromptVersion:
    """Immutable content snapshot recorded in a prompt's history."""

    id: uuid.UUID
    prompt_id: uuid.UUID
    version_number: str
    system_prompt: str = ""
    user_template: str = ""
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    change_note: str = ""
    # None only when a stored timestamp could not be parsed.
    created_at: datetime | None = field(default_factory=_utc_now)
    created_by: str | None = None
    deleted: bool = False
    deleted_at: datetime | None = None

    @property
    def content(self) -> PromptContent:
        """Return the content snapshot carried by this version."""
        return PromptContent(
            system_prompt=self.system_prompt,
            user_template=self.user_template,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    @classmethod
    def snapshot(
        cls,
        prompt_id: uuid.UUID,
        content: PromptContent,
        *,
        version_number: str,
        change_note: str = "",
        created_by: str | None = None,
        created_at: datetime | None = None,
        version_id: uuid.UUID | None = None,
    ) -> PromptVersion:
        """Build a new active version from *content*."""
        return cls(
            id=version_id or uuid.uuid4(),
            prompt_id=prompt_id,
            version_number=version_number,
            system_prompt=content.system_prompt,
            user_template=content.user_template,
            model=content.model,
            temperature=content.temperature,
            max_tokens=content.max_tokens,
            change_note=change_note,
            created_at=created_at or _utc_now(),
            created_by=created_by,
        )

    def soft_deleted(self, deleted_at: datetime) -> PromptVersion:
        """Return a copy flagged as soft-deleted at *deleted_at*."""
        return replace(self, deleted=True, deleted_at=deleted_at)

    def undeleted(self) -> PromptVersion:
        """Return a copy with the soft-delete flags cleared."""
        return replace(self, deleted=False, deleted_at=None)

    def to_record(self) -> dict[str, Any]:
        """Return a plain dictionary representation for persistence."""
        return {
            "id": str(self.id),
            "prompt_id": str(self.prompt_id),
            "version_number": self.version_number,
            "system_prompt": self.system_prompt,
            "user_template": self.user_template,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "change_note": self.change_note,
            "created_at": _isoformat(self.created_at),
            "created_by": self.created_by,
            "deleted": self.deleted,
            "deleted_at": _isoformat(self.deleted_at),
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> PromptVersion:
        """Hydrate a PromptVersion from a mapping."""
        content = PromptContent.from_record(data)
        deleted = bool(data.get("deleted", False))
        return cls(
            id=_ensure_uuid(data["id"]),
            prompt_id=_ensure_uuid(data["prompt_id"]),
            version_number=str(data["version_number"]),
            system_prompt=content.system_prompt,
            user_template=content.user_template,
            model=content.model,
            temperature=content.temperature,
            max_tokens=content.max_tokens,
            change_note=str(data.get("change_note") or ""),
            created_at=_optional_datetime(data.get("created_at")),
            created_by=data.get("created_by"),
            deleted=deleted,
            deleted_at=_optional_datetime(data.get("deleted_at")) if deleted else None,
        )


@dataclass(slots=True)
class Prompt:
    """Prompt aggregate whose content fields mirror the current version."""

    id: uuid.UUID
    title: str
    current_version_id: uuid.UUID | None = None
    versions: list[PromptVersion] = field(default_factory=list)
    system_prompt: str = ""
    user_template: str = ""
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    description: str = ""
    category: PromptCategory = PromptCategory.TEXT
    tags: list[str] = field(default_factory=list)
    collection_id: str | None = None
    favorite: bool = False
    status: PromptStatus = PromptStatus.ACTIVE
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)
    created_by: str | None = None
    # Numbers of permanently deleted versions; never handed out again.
    retired_version_numbers: list[str] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        title: str,
        content: PromptContent | None = None,
        *,
        created_by: str | None = None,
        description: str = "",
        category: PromptCategory | str = PromptCategory.TEXT,
        tags: Iterable[str] | None = None,
        collection_id: str | None = None,
        now: datetime | None = None,
    ) -> Prompt:
        """Return a new prompt holding exactly one initial version."""
        timestamp = now or _utc_now()
        prompt_id = uuid.uuid4()
        body = content or PromptContent()
        initial = PromptVersion.snapshot(
            prompt_id,
            body,
            version_number=INITIAL_VERSION_NUMBER,
            change_note=INITIAL_CHANGE_NOTE,
            created_by=created_by,
            created_at=timestamp,
        )
        prompt = cls(
            id=prompt_id,
            title=title,
            current_version_id=initial.id,
            versions=[initial],
            description=description,
            category=PromptCategory(category),
            tags=_serialize_list(tags),
            collection_id=collection_id or None,
            created_at=timestamp,
            updated_at=timestamp,
            created_by=created_by,
        )
        prompt._mirror(body)
        return prompt

    # Read helpers ------------------------------------------------------ #

    @property
    def content(self) -> PromptContent:
        """Return the mirrored content fields."""
        return PromptContent(
            system_prompt=self.system_prompt,
            user_template=self.user_template,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

    def find_version(self, version_id: uuid.UUID) -> PromptVersion | None:
        """Return the version with *version_id*, if it belongs to this prompt."""
        for version in self.versions:
            if version.id == version_id:
                return version
        return None

    @property
    def current_version(self) -> PromptVersion | None:
        """Return the version designated as current."""
        if self.current_version_id is None:
            return None
        return self.find_version(self.current_version_id)

    def active_versions(self) -> list[PromptVersion]:
        """Return versions that are not soft-deleted (unordered)."""
        return [version for version in self.versions if not version.deleted]

    def deleted_versions(self) -> list[PromptVersion]:
        """Return soft-deleted versions (unordered)."""
        return [version for version in self.versions if version.deleted]

    def used_version_numbers(self) -> set[str]:
        """Return every number held by a live or retired version."""
        numbers = {version.version_number for version in self.versions}
        numbers.update(self.retired_version_numbers)
        return numbers

    # Transitions ------------------------------------------------------- #
    #
    # Each transition returns a new aggregate and leaves ``self`` untouched so
    # callers can commit the result with a single assignment.

    def clone(self) -> Prompt:
        """Return an independent copy of the aggregate."""
        return replace(
            self,
            versions=list(self.versions),
            tags=list(self.tags),
            retired_version_numbers=list(self.retired_version_numbers),
        )

    def with_content(self, content: PromptContent, *, now: datetime | None = None) -> Prompt:
        """Return a copy whose mirrored fields hold *content* (an unsaved draft)."""
        updated = self.clone()
        updated._mirror(content)
        updated.updated_at = now or _utc_now()
        return updated

    def with_new_version(self, version: PromptVersion, *, now: datetime | None = None) -> Prompt:
        """Return a copy with *version* appended and designated as current."""
        updated = self.clone()
        updated.versions.append(version)
        updated.current_version_id = version.id
        updated._mirror(version.content)
        updated.updated_at = now or _utc_now()
        return updated

    def with_current_version(self, version_id: uuid.UUID) -> Prompt:
        """Return a copy pointing at *version_id* with its content mirrored."""
        target = self.find_version(version_id)
        if target is None:
            raise KeyError(str(version_id))
        updated = self.clone()
        updated.current_version_id = target.id
        updated._mirror(target.content)
        return updated

    def with_version_deleted(self, version_id: uuid.UUID, deleted_at: datetime) -> Prompt:
        """Return a copy where *version_id* is soft-deleted."""
        updated = self._replace_version(version_id, lambda item: item.soft_deleted(deleted_at))
        updated.updated_at = deleted_at
        return updated

    def with_version_undeleted(self, version_id: uuid.UUID) -> Prompt:
        """Return a copy where *version_id* is active again."""
        return self._replace_version(version_id, PromptVersion.undeleted)

    def without_version(self, version_id: uuid.UUID) -> Prompt:
        """Return a copy with *version_id* removed and its number retired."""
        target = self.find_version(version_id)
        if target is None:
            raise KeyError(str(version_id))
        updated = self.clone()
        updated.versions = [item for item in updated.versions if item.id != version_id]
        if target.version_number not in updated.retired_version_numbers:
            updated.retired_version_numbers.append(target.version_number)
        return updated

    def _replace_version(self, version_id: uuid.UUID, transform: Any) -> Prompt:
        updated = self.clone()
        for index, item in enumerate(updated.versions):
            if item.id == version_id:
                updated.versions[index] = transform(item)
                return updated
        raise KeyError(str(version_id))

    def _mirror(self, content: PromptContent) -> None:
        self.system_prompt = content.system_prompt
        self.user_template = content.user_template
        self.model = content.model
        self.temperature = content.temperature
        self.max_tokens = content.max_tokens

    # Serialisation ----------------------------------------------------- #

    def to_record(self) -> dict[str, Any]:
        """Return a plain dictionary representation for caching."""
        return {
            "id": str(self.id),
            "title": self.title,
            "current_version_id": (
                str(self.current_version_id) if self.current_version_id is not None else None
            ),
            "versions": [version.to_record() for version in self.versions],
            **self.content.to_record(),
            "description": self.description,
            "category": self.category.value,
            "tags": list(self.tags),
            "collection_id": self.collection_id,
            "favorite": self.favorite,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "created_by": self.created_by,
            "retired_version_numbers": list(self.retired_version_numbers),
        }

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> Prompt:
        """Create a Prompt from a dictionary record."""
        content = PromptContent.from_record(data)
        current = data.get("current_version_id")
        return cls(
            id=_ensure_uuid(data.get("id") or uuid.uuid4()),
            title=str(data.get("title") or ""),
            current_version_id=_ensure_uuid(current) if current else None,
            versions=[PromptVersion.from_record(item) for item in data.get("versions") or []],
            system_prompt=content.system_prompt,
            user_template=content.user_template,
            model=content.model,
            temperature=content.temperature,
            max_tokens=content.max_tokens,
            description=str(data.get("description") or ""),
            category=PromptCategory(str(data.get("category") or PromptCategory.TEXT.value)),
            tags=_serialize_list(data.get("tags")),
            collection_id=data.get("collection_id") or None,
            favorite=bool(data.get("favorite", False)),
            status=PromptStatus(str(data.get("status") or PromptStatus.ACTIVE.value)),
            created_at=_ensure_datetime(data.get("created_at")),
            updated_at=_ensure_datetime(data.get("updated_at")),
            created_by=data.get("created_by"),
            retired_version_numbers=_serialize_list(data.get("retired_version_numbers")),
        )


def integrity_violations(prompt: Prompt) -> list[str]:
    """Return human-readable descriptions of broken aggregate invariants."""
    problems: list[str] = []
    current = prompt.current_version
    if current is None:
        problems.append("current version is missing from the version set")
    elif current.deleted:
        problems.append("current version is soft-deleted")
    if not prompt.active_versions():
        problems.append("prompt has no active version")

    seen_ids: set[uuid.UUID] = set()
    seen_numbers: set[str] = set()
    for version in prompt.versions:
        if version.id in seen_ids:
            problems.append(f"version id {version.id} is duplicated")
        seen_ids.add(version.id)
        if version.version_number in seen_numbers:
            problems.append(f"version number {version.version_number} is duplicated")
        seen_numbers.add(version.version_number)
        if version.deleted and version.deleted_at is None:
            problems.append(f"version {version.version_number} is deleted without a timestamp")
        if not version.deleted and version.deleted_at is not None:
            problems.append(f"version {version.version_number} is active with a deletion time")

    if current is not None and prompt.content != current.content:
        problems.append("mirrored content differs from the current version")
    return problems


__all__ = [
    "BumpKind",
    "CONTENT_FIELDS",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_MODEL",
    "DEFAULT_TEMPERATURE",
    "INITIAL_CHANGE_NOTE",
    "INITIAL_VERSION_NUMBER",
    "Prompt",
    "PromptCategory",
    "PromptContent",
    "PromptStatus",
    "PromptVersion",
    "integrity_violations",
]
