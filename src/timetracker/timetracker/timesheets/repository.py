from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import TimesheetStatus
from .model import Timesheet, TimesheetEntry, TimesheetSummary


class TimesheetRepository(Protocol):
    def create(
        self,
        *,
        user_id: int,
        week_starting: date,
        entries: Sequence[TimesheetEntry],
        total_hours: float,
    ) -> Optional[int]:
        """Insert a DRAFT timesheet with its entries.

        Returns None when the user already has a timesheet for that week.
        """

        raise NotImplementedError

    def get(self, timesheet_id: int) -> Optional[Timesheet]:
        raise NotImplementedError

    def get_for_week(self, user_id: int, week_starting: date) -> Optional[Timesheet]:
        raise NotImplementedError

    def list_for_user(
        self,
        user_id: int,
        *,
        status: Optional[TimesheetStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[Timesheet]:
        raise NotImplementedError

    def count_for_user(self, user_id: int, *, status: Optional[TimesheetStatus] = None) -> int:
        raise NotImplementedError

    def list_submitted(
        self,
        *,
        exclude_user_id: Optional[int] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[Timesheet]:
        """SUBMITTED timesheets, most recent submission first."""

        raise NotImplementedError

    def count_submitted(self, *, exclude_user_id: Optional[int] = None) -> int:
        raise NotImplementedError

    # Conditional transitions: each returns False when the row is missing or
    # no longer in the expected status.
    def replace_entries(
        self,
        timesheet_id: int,
        *,
        entries: Sequence[TimesheetEntry],
        total_hours: float,
    ) -> bool:
        raise NotImplementedError

    def mark_submitted(self, timesheet_id: int, *, submitted_at: datetime) -> bool:
        raise NotImplementedError

    def decide(
        self,
        timesheet_id: int,
        *,
        status: TimesheetStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        raise NotImplementedError

    def delete(self, timesheet_id: int) -> bool:
        """Delete unless APPROVED."""

        raise NotImplementedError

    # Aggregation
    def summarize_for_user(self, user_id: int, *, since: datetime) -> Mapping[TimesheetStatus, TimesheetSummary]:
        raise NotImplementedError

    def list_recent_for_user(self, user_id: int, *, since: datetime, limit: int) -> Sequence[Timesheet]:
        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError
