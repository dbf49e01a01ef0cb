"""Unit tests for Datetime Helpers (privacy_progress/utils/datetime_helpers.py)"""
import pytest
from datetime import datetime, date, timezone, timedelta
from zoneinfo import ZoneInfo

from privacy_progress.utils.datetime_helpers import (
    UTC,
    Clock,
    days_between,
    ensure_utc,
    get_timezone,
    local_date,
    now_utc,
)


# ============================================================================
# UTC Time Tests
# ============================================================================

def test_now_utc_returns_aware_utc():
    result = now_utc()

    assert result.tzinfo is not None
    assert result.utcoffset() == timedelta(0)


def test_ensure_utc_none():
    assert ensure_utc(None) is None


def test_ensure_utc_naive_assumed_utc():
    result = ensure_utc(datetime(2024, 3, 1, 12, 0))

    assert result == datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_ensure_utc_converts_offset():
    berlin = datetime(2024, 3, 1, 13, 0, tzinfo=ZoneInfo("Europe/Berlin"))

    result = ensure_utc(berlin)

    assert result.hour == 12
    assert result.utcoffset() == timedelta(0)


# ============================================================================
# Timezone Tests
# ============================================================================

def test_get_timezone_valid():
    assert get_timezone("America/New_York") == ZoneInfo("America/New_York")


def test_get_timezone_invalid_falls_back():
    assert get_timezone("Not/AZone") == ZoneInfo("UTC")


def test_local_date_crosses_midnight():
    """23:30 UTC is already the next day in Tokyo"""
    instant = datetime(2024, 3, 1, 23, 30, tzinfo=timezone.utc)

    assert local_date(instant, UTC) == date(2024, 3, 1)
    assert local_date(instant, ZoneInfo("Asia/Tokyo")) == date(2024, 3, 2)


@pytest.mark.parametrize("earlier,later,expected", [
    (date(2024, 3, 1), date(2024, 3, 1), 0),
    (date(2024, 3, 1), date(2024, 3, 2), 1),
    (date(2024, 2, 28), date(2024, 3, 1), 2),
    (date(2024, 3, 5), date(2024, 3, 1), -4),
])
def test_days_between(earlier, later, expected):
    assert days_between(earlier, later) == expected


# ============================================================================
# Clock Tests
# ============================================================================

def test_clock_uses_injected_now():
    fixed = datetime(2024, 3, 1, 23, 30, tzinfo=timezone.utc)
    clock = Clock("Asia/Tokyo", now_func=lambda: fixed)

    assert clock.now() == fixed
    assert clock.today() == date(2024, 3, 2)


def test_clock_local_date_of_stored_timestamp():
    clock = Clock("America/Los_Angeles")

    assert clock.to_local_date(datetime(2024, 3, 2, 3, 0, tzinfo=timezone.utc)) == date(2024, 3, 1)


def test_clock_defaults_to_configured_zone():
    assert Clock().tz == get_timezone(None)
