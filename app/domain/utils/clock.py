"""
Time helpers shared by the domain layer.

All timestamps in the domain are timezone-aware UTC datetimes. Values coming
from callers without tzinfo are interpreted as UTC.
"""

from datetime import datetime, UTC
from typing import Optional


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to aware UTC.

    Naive datetimes are assumed to already be in UTC; aware ones are converted.
    None is passed through.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
