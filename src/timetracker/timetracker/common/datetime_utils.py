from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

MONDAY = 0


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_hhmm(value: str) -> time:
    """Parse HH:MM string into time."""
    return datetime.strptime(value, "%H:%M").time()


def now_local() -> datetime:
    """Current local time, used when a caller passes no `now`."""
    return datetime.now()


def start_of_year(now: Optional[datetime] = None) -> datetime:
    now = now or now_local()
    return datetime(now.year, 1, 1)


def is_monday(value: date) -> bool:
    return value.weekday() == MONDAY


def minutes_between(start: time, end: time) -> int:
    """Whole minutes from start to end on the same day (negative if end < start)."""
    return (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)


def inclusive_days(start: date, end: date) -> int:
    """Calendar days covered by [start, end], counting both endpoints."""
    return (end - start).days + 1

