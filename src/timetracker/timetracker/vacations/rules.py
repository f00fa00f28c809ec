from __future__ import annotations

from datetime import date
from typing import Optional

from ..common.datetime_utils import inclusive_days
from ..common.validators import require_max_length
from ..core.constants import MAX_REASON_LENGTH
from ..core.enums import VacationStatus
from ..core.exceptions import InvalidDateRangeError, ValidationError

BLOCKING_STATUSES = (VacationStatus.PENDING, VacationStatus.APPROVED)


def days_requested(start_date: date, end_date: date) -> int:
    """Inclusive day count; weekends and holidays are not excluded."""

    if end_date < start_date:
        raise InvalidDateRangeError("End date must be on or after start date")
    return inclusive_days(start_date, end_date)


def require_reason(reason: Optional[str]) -> str:
    value = (reason or "").strip()
    if not value:
        raise ValidationError("Reason is required")
    require_max_length(value, "Reason", MAX_REASON_LENGTH)
    return value

