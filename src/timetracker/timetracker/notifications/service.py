from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import NotificationKind, Role, TimesheetStatus, VacationStatus
from ..timesheets.model import Timesheet
from ..users.model import User
from ..users.repository import UserRepository
from ..vacations.model import VacationRequest
from .dispatcher import Dispatcher
from .sender import EmailSender

logger = logging.getLogger(__name__)

REVIEWER_ROLES = (Role.MANAGER, Role.ADMIN)


def _fmt(value: Optional[datetime]) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


class NotificationService:
    """Builds notification payloads and hands delivery to a dispatcher.

    Recipients are resolved when the job runs, not when it is queued.
    """

    def __init__(self, users: UserRepository, sender: EmailSender, dispatcher: Dispatcher):
        self._users = users
        self._sender = sender
        self._dispatcher = dispatcher

    @staticmethod
    def _wants_email(user: Optional[User]) -> bool:
        if not user:
            return False
        return user.profile is None or user.profile.preferences.email_notifications

    def _deliver(self, recipients: Sequence[User], kind: NotificationKind, payload: Dict[str, Any]) -> int:
        sent = 0
        for user in recipients:
            if not self._wants_email(user):
                logger.debug("Skipping %s for user_id=%s (notifications off)", kind.value, user.user_id)
                continue
            if self._sender.notify([user.email], kind, payload):
                sent += 1
        return sent

    def _reviewers(self) -> Sequence[User]:
        return self._users.list_by_roles(list(REVIEWER_ROLES))

    def _name_of(self, user_id: Optional[int]) -> str:
        user = self._users.get_by_id(int(user_id)) if user_id is not None else None
        return user.display_name if user else "Unknown"

    # Timesheets
    def timesheet_submitted(self, timesheet: Timesheet) -> None:
        def job() -> int:
            owner = self._users.get_by_id(timesheet.user_id)
            payload = {
                "employee_name": owner.display_name if owner else "Unknown",
                "employee_email": owner.email if owner else "",
                "week_ending": timesheet.week_ending.isoformat(),
                "total_hours": timesheet.total_hours,
                "submitted_at": _fmt(timesheet.submitted_at),
            }
            return self._deliver(self._reviewers(), NotificationKind.TIMESHEET_SUBMITTED, payload)

        self._dispatcher.submit(job, description=f"timesheet-submitted notification (timesheet_id={timesheet.timesheet_id})")

    def timesheet_reviewed(self, timesheet: Timesheet, *, comments: Optional[str] = None) -> None:
        kind = (
            NotificationKind.TIMESHEET_APPROVED
            if timesheet.status == TimesheetStatus.APPROVED
            else NotificationKind.TIMESHEET_REJECTED
        )

        def job() -> int:
            owner = self._users.get_by_id(timesheet.user_id)
            payload = {
                "week_ending": timesheet.week_ending.isoformat(),
                "total_hours": timesheet.total_hours,
                "approver_name": self._name_of(timesheet.approved_by_id),
                "reviewed_at": _fmt(timesheet.reviewed_at),
                "comments": comments if comments is not None else timesheet.rejection_reason,
            }
            return self._deliver([owner] if owner else [], kind, payload)

        self._dispatcher.submit(job, description=f"{kind.value} notification (timesheet_id={timesheet.timesheet_id})")

    # Vacation requests
    def vacation_submitted(self, request: VacationRequest) -> None:
        def job() -> int:
            owner = self._users.get_by_id(request.user_id)
            payload = {
                "employee_name": owner.display_name if owner else "Unknown",
                "employee_email": owner.email if owner else "",
                "request_type": request.request_type.value,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
                "days_requested": request.days_requested,
                "submitted_at": _fmt(request.submitted_at),
                "reason": request.reason,
            }
            return self._deliver(self._reviewers(), NotificationKind.VACATION_SUBMITTED, payload)

        self._dispatcher.submit(job, description=f"vacation-submitted notification (request_id={request.request_id})")

    def vacation_reviewed(self, request: VacationRequest, *, new_balance: Optional[int] = None) -> None:
        kind = (
            NotificationKind.VACATION_APPROVED
            if request.status == VacationStatus.APPROVED
            else NotificationKind.VACATION_REJECTED
        )

        def job() -> int:
            owner = self._users.get_by_id(request.user_id)
            payload = {
                "request_type": request.request_type.value,
                "start_date": request.start_date.isoformat(),
                "end_date": request.end_date.isoformat(),
                "days_requested": request.days_requested,
                "approver_name": self._name_of(request.reviewed_by_id),
                "reviewed_at": _fmt(request.reviewed_at),
                "comments": request.review_comments,
                "new_balance": new_balance,
            }
            return self._deliver([owner] if owner else [], kind, payload)

        self._dispatcher.submit(job, description=f"{kind.value} notification (request_id={request.request_id})")
