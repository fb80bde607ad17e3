"""Display-only retention countdown for soft-deleted versions.

Nothing here deletes data: the countdown is derived at read time from
``deleted_at`` and no purge job consumes it.

Updates:
  v0.1.1 - 2026-10-14 - Make the retention window configurable.
  v0.1.0 - 2026-10-05 - Initial days-until-purge helper.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta

DEFAULT_RETENTION_DAYS = 30

_SECONDS_PER_DAY = 24 * 60 * 60

__all__ = ["DEFAULT_RETENTION_DAYS", "days_until_purge", "is_past_retention"]


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def days_until_purge(
    deleted_at: datetime,
    *,
    now: datetime | None = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> int:
    """Return whole days left before a soft-deleted version would expire.

    Partial days round up and the result never drops below zero.
    """
    current = _aware(now) if now is not None else datetime.now(UTC)
    expires_at = _aware(deleted_at) + timedelta(days=retention_days)
    remaining = (expires_at - current).total_seconds() / _SECONDS_PER_DAY
    return max(0, math.ceil(remaining))


def is_past_retention(
    deleted_at: datetime,
    *,
    now: datetime | None = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> bool:
    """Return ``True`` once the countdown for *deleted_at* has reached zero."""
    return days_until_purge(deleted_at, now=now, retention_days=retention_days) == 0
