# src/little_stories/db/time.py
"""Time utilities for database models."""

from datetime import UTC, datetime, timedelta

# Saves within this window of creation do not count as edits.
EDIT_GRACE_PERIOD = timedelta(seconds=60)


def utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def was_edited(created_at: datetime | None, updated_at: datetime | None) -> bool:
    """Return True if `updated_at` is meaningfully later than `created_at`."""
    if created_at is None or updated_at is None:
        return False
    # SQLite hands back naive datetimes; compare in UTC either way.
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    if updated_at.tzinfo is None:
        updated_at = updated_at.replace(tzinfo=UTC)
    return updated_at > created_at + EDIT_GRACE_PERIOD
