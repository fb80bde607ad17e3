"""Core service layer for Prompt Version Manager.

Updates:
  v0.12.0 - 2026-10-06 - Export the version lifecycle manager, diff engine, and record stores.
  v0.3.0 - 2025-11-03 - Export build_prompt_manager factory for shared bootstrap.
"""

from .diff import (
    DiffLine,
    DiffLineType,
    DiffStats,
    PaneLine,
    PromptVersionDiff,
    SideBySideDiff,
    compute_diff,
    diff_stats,
    render_unified_diff,
    side_by_side,
    split_lines,
)
from .exceptions import (
    CurrentVersionProtectedError,
    LastVersionProtectedError,
    PromptIntegrityError,
    PromptManagerError,
    PromptNotFoundError,
    PromptStorageError,
    PromptVersionError,
    PromptVersionNotFoundError,
    VersionDeletedError,
    VersionErrorKind,
    VersionInputError,
    VersionNotDeletedError,
)
from .factory import build_record_store, build_version_manager
from .ordering import diff_baseline, partition_versions, sort_versions, version_diff_stats
from .repository import (
    InMemoryPromptStore,
    PromptRecordStore,
    RemotePromptStore,
    RepositoryError,
    RepositoryNotFoundError,
    SQLitePromptStore,
)
from .retention import DEFAULT_RETENTION_DAYS, days_until_purge, is_past_retention
from .version_manager import VersionHistory, VersionHistoryEntry, VersionLifecycleManager
from .version_numbers import (
    allocate_version_number,
    bump_version_number,
    next_version_number,
    parse_version_number,
)

__all__ = [
    "CurrentVersionProtectedError",
    "DEFAULT_RETENTION_DAYS",
    "DiffLine",
    "DiffLineType",
    "DiffStats",
    "InMemoryPromptStore",
    "LastVersionProtectedError",
    "PaneLine",
    "PromptIntegrityError",
    "PromptManagerError",
    "PromptNotFoundError",
    "PromptRecordStore",
    "PromptStorageError",
    "PromptVersionDiff",
    "PromptVersionError",
    "PromptVersionNotFoundError",
    "RemotePromptStore",
    "RepositoryError",
    "RepositoryNotFoundError",
    "SQLitePromptStore",
    "SideBySideDiff",
    "VersionDeletedError",
    "VersionErrorKind",
    "VersionHistory",
    "VersionHistoryEntry",
    "VersionInputError",
    "VersionLifecycleManager",
    "VersionNotDeletedError",
    "allocate_version_number",
    "build_record_store",
    "build_version_manager",
    "bump_version_number",
    "compute_diff",
    "days_until_purge",
    "diff_baseline",
    "diff_stats",
    "is_past_retention",
    "next_version_number",
    "parse_version_number",
    "partition_versions",
    "render_unified_diff",
    "side_by_side",
    "sort_versions",
    "split_lines",
    "version_diff_stats",
]
