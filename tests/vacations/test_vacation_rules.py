from __future__ import annotations

from datetime import date

import pytest

from src.timetracker.timetracker.core.exceptions import InvalidDateRangeError, ValidationError
from src.timetracker.timetracker.vacations.rules import days_requested, require_reason


def test_days_are_inclusive_and_include_weekends():
    assert days_requested(date(2025, 1, 10), date(2025, 1, 10)) == 1
    # Friday to Monday
    assert days_requested(date(2025, 1, 10), date(2025, 1, 13)) == 4


def test_days_reject_reversed_range():
    with pytest.raises(InvalidDateRangeError):
        days_requested(date(2025, 1, 13), date(2025, 1, 10))


def test_reason_is_trimmed_and_bounded():
    assert require_reason("  trip ") == "trip"
    with pytest.raises(ValidationError):
        require_reason("")
    with pytest.raises(ValidationError):
        require_reason("x" * 1001)

