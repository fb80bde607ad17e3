"""Common exception classes for the core package.

All exceptions ultimately inherit from :class:`PromptManagerError`, allowing
callers to catch a single base class for any manager-related failure while
still distinguishing individual error categories when needed. Each class
carries a :class:`VersionErrorKind` so presentation layers can localise the
condition without parsing messages.

Updates:
  v0.3.0 - 2026-10-11 - Add structured error kinds for presentation layers.
  v0.2.0 - 2026-10-07 - Add version lifecycle protection errors.
  v0.1.0 - 2026-10-02 - Trim hierarchy to prompt and version failures.
"""

from __future__ import annotations

from enum import Enum
from typing import ClassVar


class VersionErrorKind(str, Enum):
    """Machine-readable failure categories."""

    NOT_FOUND = "not_found"
    CURRENT_VERSION_PROTECTED = "current_version_protected"
    LAST_VERSION_PROTECTED = "last_version_protected"
    NOT_DELETED = "not_deleted"
    VERSION_DELETED = "version_deleted"
    INVALID_INPUT = "invalid_input"
    STORE_FAILURE = "store_failure"
    INTEGRITY = "integrity"
    UNKNOWN = "unknown"


class PromptManagerError(Exception):
    """Base exception for Prompt Version Manager failures."""

    kind: ClassVar[VersionErrorKind] = VersionErrorKind.UNKNOWN


class PromptNotFoundError(PromptManagerError):
    """Raised when a prompt cannot be located in the backing store."""

    kind = VersionErrorKind.NOT_FOUND


class PromptStorageError(PromptManagerError):
    """Raised when the record store rejects or fails a call."""

    kind = VersionErrorKind.STORE_FAILURE


class PromptIntegrityError(PromptManagerError):
    """Raised when an aggregate breaks its invariants (a programming or store error)."""

    kind = VersionErrorKind.INTEGRITY


class PromptVersionError(PromptManagerError):
    """Base class for prompt versioning workflow failures."""


class PromptVersionNotFoundError(PromptVersionError):
    """Raised when the requested version does not belong to the prompt."""

    kind = VersionErrorKind.NOT_FOUND


class CurrentVersionProtectedError(PromptVersionError):
    """Raised when deleting the version currently designated as current."""

    kind = VersionErrorKind.CURRENT_VERSION_PROTECTED


class LastVersionProtectedError(PromptVersionError):
    """Raised when a soft delete would leave no active version."""

    kind = VersionErrorKind.LAST_VERSION_PROTECTED


class VersionNotDeletedError(PromptVersionError):
    """Raised when restoring a version that is not soft-deleted."""

    kind = VersionErrorKind.NOT_DELETED


class VersionDeletedError(PromptVersionError):
    """Raised when making a soft-deleted version current."""

    kind = VersionErrorKind.VERSION_DELETED


class VersionInputError(PromptVersionError):
    """Raised when caller-supplied version input is invalid."""

    kind = VersionErrorKind.INVALID_INPUT


__all__ = [
    "CurrentVersionProtectedError",
    "LastVersionProtectedError",
    "PromptIntegrityError",
    "PromptManagerError",
    "PromptNotFoundError",
    "PromptStorageError",
    "PromptVersionError",
    "PromptVersionNotFoundError",
    "VersionDeletedError",
    "VersionErrorKind",
    "VersionInputError",
    "VersionNotDeletedError",
]
