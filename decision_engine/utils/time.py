"""
Time utilities for signal timestamps and persistence.

Signals record when they were registered, activated and completed. These
helpers keep every timestamp UTC-aware and give the persistence layer one
serialization format.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current wall-clock time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """
    Normalize a datetime to UTC.

    Naive datetimes are assumed to already be UTC.

    Args:
        ts: Datetime to normalize

    Returns:
        Timezone-aware UTC datetime
    """
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def to_epoch_ms(ts: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds."""
    return int(ensure_utc(ts).timestamp() * 1000)


def format_timestamp(ts: Optional[datetime]) -> Optional[str]:
    """
    Format a timestamp for persistence and logging.

    Args:
        ts: Timestamp to format, may be None

    Returns:
        ISO8601 formatted string or None
    """
    if ts is None:
        return None
    return ensure_utc(ts).isoformat()


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO8601 timestamp written by format_timestamp.

    Args:
        value: ISO8601 string, may be None or empty

    Returns:
        Aware UTC datetime or None
    """
    if not value:
        return None
    return ensure_utc(datetime.fromisoformat(value))
