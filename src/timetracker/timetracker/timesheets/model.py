from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Tuple

from ..core.enums import TimesheetStatus


@dataclass(frozen=True)
class NewTimesheetEntry:
    """One day of work as submitted by the employee (hours not yet derived)."""

    work_date: date
    start_time: time
    end_time: time
    break_minutes: int = 0
    notes: Optional[str] = None


@dataclass(frozen=True)
class TimesheetEntry:
    work_date: date
    start_time: time
    end_time: time
    break_minutes: int
    hours_worked: float
    notes: Optional[str] = None
    entry_id: Optional[int] = None


@dataclass(frozen=True)
class Timesheet:
    timesheet_id: int
    user_id: int
    week_starting: date
    status: TimesheetStatus
    total_hours: float
    entries: Tuple[TimesheetEntry, ...] = ()
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    approved_by_id: Optional[int] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def week_ending(self) -> date:
        return self.week_starting + timedelta(days=6)


@dataclass(frozen=True)
class TimesheetSummary:
    count: int = 0
    total_hours: float = 0.0
