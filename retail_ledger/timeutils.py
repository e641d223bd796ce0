"""
Date and time helpers pinned to the business timezone.

The store operates on local calendar days, so "today" and "now"
are always taken in BUSINESS_TIMEZONE and persisted as naive
values (YYYY-MM-DD / YYYY-MM-DD HH:MM:SS) in that zone.
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from retail_ledger.config import get_settings


def business_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().BUSINESS_TIMEZONE)


def now_local() -> datetime:
    """Current wall-clock time in the business timezone, second precision."""
    return datetime.now(business_tz()).replace(tzinfo=None, microsecond=0)


def today_local() -> date:
    return now_local().date()


def add_days(start: date, days: int) -> date:
    return start + timedelta(days=days)


def day_key(value: date | datetime) -> str:
    """Format a date or timestamp as a YYYY-MM-DD bucket key."""
    return value.strftime("%Y-%m-%d")


def start_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day)


def end_of_day(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, 23, 59, 59)


def now_local_precise() -> datetime:
    """Like now_local, keeping microseconds for ordering append-only rows."""
    return datetime.now(business_tz()).replace(tzinfo=None)
