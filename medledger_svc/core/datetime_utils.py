"""
UTC-first datetime utilities for the MedLedger API.

Observations arrive as epoch seconds (the smart contract stores them that
way); these helpers turn them into timezone-aware datetimes and back.

Usage:
    from core.datetime_utils import utc_now, from_epoch_seconds, format_date

    now = utc_now()
    dt = from_epoch_seconds(1735725600)            # UTC
    local = from_epoch_seconds(1735725600, ist)    # wall-clock in IST
"""
import logging
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

# 9999-12-31T23:59:59Z, the last second a datetime can hold
MAX_EPOCH_SECONDS = 253402300799
# 0001-01-01T00:00:00Z
MIN_EPOCH_SECONDS = -62135596800


def utc_now() -> datetime:
    """
    Get current datetime in UTC with timezone info.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo
        datetime.timezone.utc
    """
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    - If datetime is naive (no timezone), assumes it's already UTC
    - If datetime has timezone, converts to UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def from_epoch_seconds(seconds: float, tz: Optional[tzinfo] = None) -> datetime:
    """
    Convert epoch seconds to an aware datetime.

    Values outside the datetime range are clamped a day inside it, so any
    timezone offset still lands on a representable date.

    Args:
        seconds: Seconds since the Unix epoch.
        tz: Target timezone; UTC when omitted.

    Example:
        >>> from_epoch_seconds(0).isoformat()
        '1970-01-01T00:00:00+00:00'
    """
    seconds = min(max(seconds, MIN_EPOCH_SECONDS + SECONDS_PER_DAY), MAX_EPOCH_SECONDS - SECONDS_PER_DAY)
    return datetime.fromtimestamp(seconds, tz or timezone.utc)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string with 'Z' suffix.

    Example:
        >>> format_iso(datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc))
        '2024-01-15T10:30:00Z'
    """
    return to_utc(dt).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_date(dt: datetime) -> str:
    """Format the calendar date of ``dt`` in its own timezone (YYYY-MM-DD)."""
    return dt.strftime("%Y-%m-%d")


@lru_cache(maxsize=32)
def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve an IANA timezone name, falling back to UTC for unknown names.

    Args:
        name: Timezone name such as "Asia/Kolkata".
    """
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone, falling back to UTC", extra={"timezone": name})
        return timezone.utc
