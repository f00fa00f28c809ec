from __future__ import annotations

from datetime import date, time

import pytest

from src.timetracker.timetracker.core.exceptions import InvalidEntryError, InvalidWeekStartError
from src.timetracker.timetracker.timesheets.model import NewTimesheetEntry
from src.timetracker.timetracker.timesheets.rules import (
    build_entries,
    compute_hours_worked,
    require_week_start,
    total_hours,
)


def _entry(day=10, start=(9, 0), end=(17, 0), brk=0, notes=None):
    return NewTimesheetEntry(
        work_date=date(2025, 3, day),
        start_time=time(*start),
        end_time=time(*end),
        break_minutes=brk,
        notes=notes,
    )


def test_hours_subtract_break():
    assert compute_hours_worked(_entry(start=(9, 0), end=(17, 0), brk=30)) == 7.5


def test_hours_round_to_two_decimals():
    assert compute_hours_worked(_entry(start=(9, 0), end=(9, 20))) == 0.33


def test_break_longer_than_shift_clamps_to_zero():
    assert compute_hours_worked(_entry(start=(9, 0), end=(10, 0), brk=90)) == 0.0


def test_build_entries_sorts_by_date_and_totals():
    entries = build_entries([_entry(day=12), _entry(day=10), _entry(day=11, brk=60)])

    assert [e.work_date.day for e in entries] == [10, 11, 12]
    assert total_hours(entries) == 23.0


def test_end_before_start_rejected():
    with pytest.raises(InvalidEntryError):
        build_entries([_entry(start=(17, 0), end=(9, 0))])


def test_end_equal_start_rejected():
    with pytest.raises(InvalidEntryError):
        build_entries([_entry(start=(9, 0), end=(9, 0))])


@pytest.mark.parametrize("brk", [-1, 481])
def test_break_out_of_range_rejected(brk):
    with pytest.raises(InvalidEntryError):
        build_entries([_entry(brk=brk)])


def test_duplicate_work_date_rejected():
    with pytest.raises(InvalidEntryError):
        build_entries([_entry(day=10), _entry(day=10, start=(18, 0), end=(19, 0))])


def test_notes_too_long_rejected():
    with pytest.raises(InvalidEntryError):
        build_entries([_entry(notes="x" * 501)])


def test_blank_notes_are_dropped():
    assert build_entries([_entry(notes="   ")])[0].notes is None


def test_week_start_must_be_monday():
    assert require_week_start(date(2025, 3, 10)) == date(2025, 3, 10)
    with pytest.raises(InvalidWeekStartError):
        require_week_start(date(2025, 3, 11))
