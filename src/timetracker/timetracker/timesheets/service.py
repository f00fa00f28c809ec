from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.pagination import Page, normalize_paging
from ..core.constants import DEFAULT_REJECTION_REASON
from ..core.enums import ReviewDecision, Role, TimesheetStatus
from ..core.exceptions import (
    AuthorizationError,
    DuplicateWeekError,
    InsufficientPermissionError,
    InvalidStateError,
    NotFoundError,
    NotOwnerError,
)
from ..core.permissions import Actor, has_permission
from ..notifications.service import NotificationService
from .model import NewTimesheetEntry, Timesheet
from .repository import TimesheetRepository
from .rules import build_entries, require_week_start, total_hours

logger = logging.getLogger(__name__)


class TimesheetService:
    """Weekly timesheet lifecycle: DRAFT -> SUBMITTED -> APPROVED | REJECTED.

    Every transition is applied by the repository as a conditional update on
    the expected status; losing a race surfaces as InvalidStateError.
    """

    def __init__(self, timesheets: TimesheetRepository, notifier: NotificationService):
        self._timesheets = timesheets
        self._notifier = notifier

    def _require(self, timesheet_id: int) -> Timesheet:
        ts = self._timesheets.get(int(timesheet_id))
        if not ts:
            raise NotFoundError("Timesheet not found")
        return ts

    @staticmethod
    def _require_owner(actor: Actor, ts: Timesheet) -> None:
        if ts.user_id != actor.user_id:
            raise NotOwnerError("You can only modify your own timesheets")

    def create(self, actor: Actor, *, week_starting: date, entries: Sequence[NewTimesheetEntry]) -> Timesheet:
        require_week_start(week_starting)
        built = build_entries(entries)

        if self._timesheets.get_for_week(actor.user_id, week_starting):
            raise DuplicateWeekError("Timesheet already exists for this week")

        timesheet_id = self._timesheets.create(
            user_id=actor.user_id,
            week_starting=week_starting,
            entries=built,
            total_hours=total_hours(built),
        )
        if timesheet_id is None:
            raise DuplicateWeekError("Timesheet already exists for this week")

        logger.info("Timesheet created: timesheet_id=%s user_id=%s week=%s", timesheet_id, actor.user_id, week_starting)
        return self._require(timesheet_id)

    def get(self, actor: Actor, timesheet_id: int) -> Timesheet:
        ts = self._require(timesheet_id)
        if ts.user_id != actor.user_id and not has_permission(actor.role, Role.MANAGER):
            raise AuthorizationError("Access denied")
        return ts

    def list_for_user(
        self,
        actor: Actor,
        *,
        status: Optional[TimesheetStatus] = None,
        page: Optional[int] = 1,
        limit: Optional[int] = None,
    ) -> Page[Timesheet]:
        page, limit, offset = normalize_paging(page, limit)
        items = self._timesheets.list_for_user(actor.user_id, status=status, limit=limit, offset=offset)
        total = self._timesheets.count_for_user(actor.user_id, status=status)
        return Page(items=items, page=page, limit=limit, total=total)

    def list_for_review(self, actor: Actor, *, page: Optional[int] = 1, limit: Optional[int] = None) -> Page[Timesheet]:
        if not has_permission(actor.role, Role.MANAGER):
            raise InsufficientPermissionError("Access denied. Manager role required.")

        page, limit, offset = normalize_paging(page, limit)
        items = self._timesheets.list_submitted(exclude_user_id=actor.user_id, limit=limit, offset=offset)
        total = self._timesheets.count_submitted(exclude_user_id=actor.user_id)
        return Page(items=items, page=page, limit=limit, total=total)

    def edit(self, actor: Actor, timesheet_id: int, *, entries: Sequence[NewTimesheetEntry]) -> Timesheet:
        ts = self._require(timesheet_id)
        self._require_owner(actor, ts)
        if ts.status != TimesheetStatus.DRAFT:
            raise InvalidStateError("Only draft timesheets can be edited")

        built = build_entries(entries)
        if not self._timesheets.replace_entries(ts.timesheet_id, entries=built, total_hours=total_hours(built)):
            raise InvalidStateError("Only draft timesheets can be edited")

        logger.info("Timesheet edited: timesheet_id=%s entries=%s", ts.timesheet_id, len(built))
        return self._require(ts.timesheet_id)

    def submit(self, actor: Actor, timesheet_id: int, *, now: Optional[datetime] = None) -> Timesheet:
        ts = self._require(timesheet_id)
        self._require_owner(actor, ts)
        if ts.status != TimesheetStatus.DRAFT:
            raise InvalidStateError("Only draft timesheets can be submitted")

        if not self._timesheets.mark_submitted(ts.timesheet_id, submitted_at=now or now_local()):
            raise InvalidStateError("Only draft timesheets can be submitted")

        submitted = self._require(ts.timesheet_id)
        logger.info("Timesheet submitted: timesheet_id=%s user_id=%s", submitted.timesheet_id, actor.user_id)
        self._notifier.timesheet_submitted(submitted)
        return submitted

    def review(
        self,
        actor: Actor,
        timesheet_id: int,
        *,
        decision: ReviewDecision,
        comments: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Timesheet:
        if not has_permission(actor.role, Role.MANAGER):
            raise InsufficientPermissionError("Access denied. Manager role required.")

        ts = self._require(timesheet_id)
        if ts.status != TimesheetStatus.SUBMITTED:
            raise InvalidStateError("Only submitted timesheets can be approved or rejected")

        decision = ReviewDecision(decision)
        comments = (comments or "").strip() or None
        if decision == ReviewDecision.APPROVE:
            status, reason = TimesheetStatus.APPROVED, None
        else:
            status, reason = TimesheetStatus.REJECTED, comments or DEFAULT_REJECTION_REASON

        ok = self._timesheets.decide(
            ts.timesheet_id,
            status=status,
            reviewer_id=actor.user_id,
            reviewed_at=now or now_local(),
            rejection_reason=reason,
        )
        if not ok:
            raise InvalidStateError("Only submitted timesheets can be approved or rejected")

        reviewed = self._require(ts.timesheet_id)
        logger.info(
            "Timesheet reviewed: timesheet_id=%s status=%s reviewer=%s",
            reviewed.timesheet_id,
            reviewed.status.value,
            actor.user_id,
        )
        self._notifier.timesheet_reviewed(reviewed, comments=comments)
        return reviewed

    def delete(self, actor: Actor, timesheet_id: int) -> None:
        ts = self._require(timesheet_id)
        self._require_owner(actor, ts)
        if ts.status == TimesheetStatus.APPROVED:
            raise InvalidStateError("Approved timesheets cannot be deleted")

        if not self._timesheets.delete(ts.timesheet_id):
            raise InvalidStateError("Approved timesheets cannot be deleted")
        logger.info("Timesheet deleted: timesheet_id=%s user_id=%s", ts.timesheet_id, actor.user_id)
