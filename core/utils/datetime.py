"""Datetime utilities for common operations."""

from datetime import datetime, date, timedelta, timezone
from typing import Optional


def now() -> datetime:
    """Get current datetime in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes.

    SQLite hands back naive values even for ``DateTime(timezone=True)``
    columns; everything is stored in UTC so the conversion is lossless.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def add_days(dt: datetime, days: int) -> datetime:
    """Add days to a datetime (can be negative)."""
    return dt + timedelta(days=days)


def add_hours(dt: datetime, hours: int) -> datetime:
    """Add hours to a datetime (can be negative)."""
    return dt + timedelta(hours=hours)


def is_past(dt: datetime | date) -> bool:
    """
    Check if date/datetime is in the past.

    Args:
        dt: Date or datetime to check

    Returns:
        True if in the past
    """
    if isinstance(dt, date) and not isinstance(dt, datetime):
        return dt < now().date()

    return ensure_utc(dt) <= now()


def isoformat(dt: Optional[datetime | date]) -> Optional[str]:
    """Serialize a date/datetime for JSON responses."""
    if dt is None:
        return None
    if isinstance(dt, datetime):
        return ensure_utc(dt).isoformat()
    return dt.isoformat()
