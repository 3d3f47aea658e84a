"""
Clock collaborator.

All date logic in the engagement tracker works on canonical YYYY-MM-DD
strings. This module is the only place that looks at wall-clock time;
everything else receives "today" as a plain value.
"""
from datetime import date, datetime, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from lernpfad.core.config import APP_TIMEZONE


def _parse(day: str) -> Optional[date]:
    if not day:
        return None
    try:
        return date.fromisoformat(day)
    except ValueError:
        return None


def days_between(date_a: str, date_b: str) -> Optional[int]:
    """
    Whole calendar days from date_a to date_b.
    Returns None (an unbounded gap) when either side is empty or unreadable.
    """
    a = _parse(date_a)
    b = _parse(date_b)
    if a is None or b is None:
        return None
    return (b - a).days


def week_start(day: str) -> str:
    """Monday of the week containing *day*."""
    d = _parse(day)
    if d is None:
        return ""
    return (d - timedelta(days=d.weekday())).isoformat()


class Clock:
    """Produces "today" in one fixed timezone."""

    def __init__(self, timezone: str = APP_TIMEZONE):
        self.timezone = timezone
        self._tz = ZoneInfo(timezone)

    def today(self) -> str:
        return datetime.now(self._tz).date().isoformat()

    def week_start(self) -> str:
        return week_start(self.today())
