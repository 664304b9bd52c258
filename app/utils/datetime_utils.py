"""
Helpers for optional datetime handling (naive values read back from SQLite, plain dates).
"""
from __future__ import annotations

from datetime import UTC, date, datetime, time
from typing import Any


def dt_replace_utc(dt: datetime | None | Any) -> datetime | None:
    """
    Return dt with tzinfo=UTC if naive, or None if dt is None.
    Use for optional datetimes that may be naive (e.g. from DB).
    """
    if dt is None:
        return None
    if isinstance(dt, datetime):
        return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt
    return None


def as_utc_instant(value: datetime | date | None | Any) -> datetime | None:
    """
    Normalize a date or datetime to an aware UTC datetime; plain dates map to midnight UTC.
    Anything else returns None.
    """
    if isinstance(value, datetime):
        return dt_replace_utc(value)
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=UTC)
    return None
