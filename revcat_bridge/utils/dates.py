"""Timestamp helpers.

RevenueCat sends epoch milliseconds; the storefront keeps whole-second UTC
datetimes and renders them as ``Y-m-d H:i:s``.
"""

from datetime import datetime, timezone
from typing import Optional

GMT_FORMAT = "%Y-%m-%d %H:%M:%S"


def millis_to_datetime(millis: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime truncated to seconds.

    Examples:
        >>> millis_to_datetime(1700000000999)
        datetime.datetime(2023, 11, 14, 22, 13, 20, tzinfo=datetime.timezone.utc)
    """
    return datetime.fromtimestamp(int(millis) // 1000, tz=timezone.utc)


def format_gmt(value: Optional[datetime]) -> Optional[str]:
    """Render a datetime the way the storefront stores dates (UTC, no offset)."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(GMT_FORMAT)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime truncated to seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)
