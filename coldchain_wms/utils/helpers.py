"""
General helper utilities
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what SQLite stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def site_now(tz_name: str) -> datetime:
    """Aware wall-clock time at the site"""
    return datetime.now(ZoneInfo(tz_name))


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Shift an aware datetime to UTC and drop the offset; naive values are taken as UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def round1(value: float) -> float:
    return round(value * 10) / 10
