"""Datetime helpers; everything the service stores or compares is UTC."""

from __future__ import annotations

from datetime import UTC, datetime


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime in UTC.

    Naive values are assumed to already be UTC, which is how SQLite hands
    back ``DateTime(timezone=True)`` columns.
    """

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def utc_now() -> datetime:
    return datetime.now(UTC)


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat()
