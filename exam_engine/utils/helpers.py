"""
Helper Functions
Utility functions used across the application
"""
from datetime import datetime, timezone


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def ensure_utc(value):
    """
    Tag a datetime as UTC.

    SQLite hands DateTime columns back without tzinfo; everything the engine
    stores is UTC, so naive values are re-tagged rather than converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def isoformat(value):
    """Serialize an instant as an ISO-8601 UTC string (None passes through)"""
    if value is None:
        return None
    return ensure_utc(value).isoformat()


def seconds_until(deadline, now):
    """Whole seconds from now until deadline, floored at 0; None if no deadline"""
    if deadline is None:
        return None
    delta = ensure_utc(deadline) - ensure_utc(now)
    return max(0, int(delta.total_seconds()))
