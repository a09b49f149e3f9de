"""Time helpers.

Timestamps are stored as timezone-naive UTC datetimes.
"""

from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Current UTC time without tzinfo."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()
