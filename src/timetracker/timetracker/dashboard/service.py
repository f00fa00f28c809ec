from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import start_of_year
from ..core.constants import DASHBOARD_RECENT_LIMIT
from ..core.enums import Role, TimesheetStatus, VacationStatus
from ..core.exceptions import NotFoundError
from ..core.permissions import Actor, has_permission
from ..timesheets.model import Timesheet
from ..timesheets.repository import TimesheetRepository
from ..users.model import User
from ..users.repository import UserRepository
from ..vacations.model import VacationRequest
from ..vacations.repository import VacationRepository


@dataclass(frozen=True)
class TimesheetStats:
    total: int = 0
    total_hours: float = 0.0
    pending: int = 0


@dataclass(frozen=True)
class VacationStats:
    total: int = 0
    total_days: int = 0
    pending: int = 0


@dataclass(frozen=True)
class PendingTimesheet:
    timesheet: Timesheet
    employee_name: str
    employee_email: str


@dataclass(frozen=True)
class PendingVacation:
    request: VacationRequest
    employee_name: str
    employee_email: str


@dataclass(frozen=True)
class ManagerStats:
    pending_timesheets: int
    pending_vacations: int
    recent_timesheets: Sequence[PendingTimesheet]
    recent_vacations: Sequence[PendingVacation]


@dataclass(frozen=True)
class AdminStats:
    total_users: int
    total_timesheets: int
    total_vacation_requests: int
    users_by_role: Mapping[Role, int]


@dataclass(frozen=True)
class Dashboard:
    user: User
    timesheets: TimesheetStats
    vacations: VacationStats
    recent_timesheets: Sequence[Timesheet]
    recent_vacations: Sequence[VacationRequest]
    manager: Optional[ManagerStats] = None
    admin: Optional[AdminStats] = None


class DashboardService:
    """Read-only per-role aggregation, scoped to the calendar year to date."""

    def __init__(self, users: UserRepository, timesheets: TimesheetRepository, vacations: VacationRepository):
        self._users = users
        self._timesheets = timesheets
        self._vacations = vacations

    def get_dashboard(self, actor: Actor, *, now: Optional[datetime] = None) -> Dashboard:
        user = self._users.get_by_id(actor.user_id)
        if not user:
            raise NotFoundError("User not found")

        since = start_of_year(now)

        ts_summary = self._timesheets.summarize_for_user(actor.user_id, since=since)
        vac_summary = self._vacations.summarize_for_user(actor.user_id, since=since)

        timesheets = TimesheetStats(
            total=sum(s.count for s in ts_summary.values()),
            total_hours=round(sum(s.total_hours for s in ts_summary.values()), 2),
            pending=self._timesheets.count_for_user(actor.user_id, status=TimesheetStatus.SUBMITTED),
        )
        vacations = VacationStats(
            total=sum(s.count for s in vac_summary.values()),
            total_days=sum(s.total_days for s in vac_summary.values()),
            pending=self._vacations.count_requests(user_id=actor.user_id, status=VacationStatus.PENDING),
        )

        return Dashboard(
            user=user,
            timesheets=timesheets,
            vacations=vacations,
            recent_timesheets=self._timesheets.list_recent_for_user(
                actor.user_id, since=since, limit=DASHBOARD_RECENT_LIMIT
            ),
            recent_vacations=self._vacations.list_recent_for_user(
                actor.user_id, since=since, limit=DASHBOARD_RECENT_LIMIT
            ),
            manager=self._manager_stats(actor) if has_permission(actor.role, Role.MANAGER) else None,
            admin=self._admin_stats() if has_permission(actor.role, Role.ADMIN) else None,
        )

    def _owner(self, user_id: int, cache: dict[int, Optional[User]]) -> tuple[str, str]:
        if user_id not in cache:
            cache[user_id] = self._users.get_by_id(user_id)
        owner = cache[user_id]
        if not owner:
            return "Unknown", ""
        return owner.display_name, owner.email

    def _manager_stats(self, actor: Actor) -> ManagerStats:
        cache: dict[int, Optional[User]] = {}

        recent_ts = []
        for ts in self._timesheets.list_submitted(exclude_user_id=actor.user_id, limit=DASHBOARD_RECENT_LIMIT):
            name, email = self._owner(ts.user_id, cache)
            recent_ts.append(PendingTimesheet(timesheet=ts, employee_name=name, employee_email=email))

        recent_vac = []
        for req in self._vacations.list_pending(exclude_user_id=actor.user_id, limit=DASHBOARD_RECENT_LIMIT):
            name, email = self._owner(req.user_id, cache)
            recent_vac.append(PendingVacation(request=req, employee_name=name, employee_email=email))

        return ManagerStats(
            pending_timesheets=self._timesheets.count_submitted(exclude_user_id=actor.user_id),
            pending_vacations=self._vacations.count_pending(exclude_user_id=actor.user_id),
            recent_timesheets=recent_ts,
            recent_vacations=recent_vac,
        )

    def _admin_stats(self) -> AdminStats:
        counts = self._users.count_by_role()
        return AdminStats(
            total_users=self._users.count_all(),
            total_timesheets=self._timesheets.count_all(),
            total_vacation_requests=self._vacations.count_all(),
            users_by_role={role: int(counts.get(role, 0)) for role in Role},
        )
