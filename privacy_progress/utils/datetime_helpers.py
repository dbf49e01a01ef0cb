"""
Standardized Date/Time Handling Utilities

All persisted timestamps are timezone-aware UTC. Calendar-day questions
(streaks, challenge day counts) are answered in the user's local zone so that
time-of-day never shifts a day boundary.

CRITICAL RULES:
- Never compare activity by elapsed seconds, only by local calendar date
- Never mix naive and aware datetimes
"""

import logging
from datetime import datetime, date
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from privacy_progress.config import DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def get_timezone(tz_name: Optional[str] = None) -> ZoneInfo:
    """
    Resolve an IANA zone name, falling back to the configured default

    Args:
        tz_name: Zone name such as "Europe/Berlin" (None uses DEFAULT_TIMEZONE)

    Returns:
        ZoneInfo for the zone
    """
    name = tz_name or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.error(f"Invalid timezone '{name}': {e}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_utc() -> datetime:
    """
    Get current datetime in UTC (timezone-aware)

    Returns:
        Current datetime in UTC with timezone info
    """
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Ensure datetime is in UTC

    Args:
        dt: Datetime (can be None, naive, or aware)

    Returns:
        Datetime in UTC, or None if input was None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Assume UTC for naive datetimes
        logger.warning(f"Received naive datetime, assuming UTC: {dt}")
        return dt.replace(tzinfo=UTC)

    return dt.astimezone(UTC)


def local_date(dt: datetime, tz: ZoneInfo) -> date:
    """Calendar date of an instant in the given zone"""
    return ensure_utc(dt).astimezone(tz).date()


def days_between(earlier: date, later: date) -> int:
    """Whole calendar days from earlier to later (negative if reversed)"""
    return (later - earlier).days


class Clock:
    """
    Session clock bound to the user's zone

    Every component of a session asks the same clock for "now" and "today",
    so a single action never straddles two different notions of the date.
    """

    def __init__(
        self,
        tz_name: Optional[str] = None,
        now_func: Callable[[], datetime] = now_utc
    ):
        self.tz = get_timezone(tz_name)
        self._now_func = now_func

    def now(self) -> datetime:
        """Current instant in UTC"""
        return ensure_utc(self._now_func())

    def today(self) -> date:
        """Current calendar date in the user's zone"""
        return local_date(self.now(), self.tz)

    def to_local_date(self, dt: datetime) -> date:
        """Calendar date of a stored timestamp in the user's zone"""
        return local_date(dt, self.tz)
