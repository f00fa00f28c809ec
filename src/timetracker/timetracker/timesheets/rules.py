"""Pure timesheet rules: hour derivation and entry validation."""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Sequence

from ..common.datetime_utils import is_monday, minutes_between
from ..core.constants import MAX_BREAK_MINUTES, MAX_DAILY_HOURS, MAX_ENTRY_NOTES_LENGTH, MAX_WEEKLY_HOURS
from ..core.exceptions import InvalidEntryError, InvalidWeekStartError
from .model import NewTimesheetEntry, TimesheetEntry


def require_week_start(week_starting: date) -> date:
    if not is_monday(week_starting):
        raise InvalidWeekStartError("Week must start on a Monday")
    return week_starting


def compute_hours_worked(entry: NewTimesheetEntry) -> float:
    """Hours between start and end minus the break, never below zero."""

    minutes = minutes_between(entry.start_time, entry.end_time) - int(entry.break_minutes)
    return round(max(0, minutes) / 60, 2)


def validate_entry(entry: NewTimesheetEntry) -> TimesheetEntry:
    day = entry.work_date.isoformat()
    if minutes_between(entry.start_time, entry.end_time) <= 0:
        raise InvalidEntryError(f"{day}: end time must be after start time")

    if not 0 <= int(entry.break_minutes) <= MAX_BREAK_MINUTES:
        raise InvalidEntryError(f"{day}: break must be between 0 and {MAX_BREAK_MINUTES} minutes")

    hours = compute_hours_worked(entry)
    if hours > MAX_DAILY_HOURS:
        raise InvalidEntryError(f"{day}: hours cannot exceed {MAX_DAILY_HOURS} per day")

    notes = (entry.notes or "").strip() or None
    if notes and len(notes) > MAX_ENTRY_NOTES_LENGTH:
        raise InvalidEntryError(f"{day}: notes cannot exceed {MAX_ENTRY_NOTES_LENGTH} characters")

    return TimesheetEntry(
        work_date=entry.work_date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        break_minutes=int(entry.break_minutes),
        hours_worked=hours,
        notes=notes,
    )


def total_hours(entries: Iterable[TimesheetEntry]) -> float:
    return round(sum(e.hours_worked for e in entries), 2)


def build_entries(entries: Sequence[NewTimesheetEntry]) -> List[TimesheetEntry]:
    """Validate and derive hours for a full entry set, ordered by work date."""

    seen: set[date] = set()
    out: List[TimesheetEntry] = []
    for entry in entries:
        if entry.work_date in seen:
            raise InvalidEntryError(f"{entry.work_date.isoformat()}: only one entry per work day")
        seen.add(entry.work_date)
        out.append(validate_entry(entry))

    out.sort(key=lambda e: e.work_date)
    if total_hours(out) > MAX_WEEKLY_HOURS:
        raise InvalidEntryError(f"Total hours cannot exceed {MAX_WEEKLY_HOURS} per week")
    return out
