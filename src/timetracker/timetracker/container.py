from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .balances.ledger import BalanceLedger
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .notifications.dispatcher import BackgroundDispatcher, Dispatcher
from .notifications.sender import EmailSender, LoggingEmailSender, SMTPConfig, SMTPEmailSender
from .notifications.service import NotificationService
from .timesheets.mysql_timesheet_repository import MySQLTimesheetRepository
from .timesheets.repository import TimesheetRepository
from .timesheets.service import TimesheetService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, ProfileService, UserService
from .vacations.mysql_vacation_repository import MySQLVacationRepository
from .vacations.repository import VacationRepository
from .vacations.service import VacationService


@dataclass(frozen=True)
class Container:
    users_repo: UserRepository
    timesheets_repo: TimesheetRepository
    vacations_repo: VacationRepository

    email_sender: EmailSender
    dispatcher: Dispatcher

    auth_service: AuthService
    user_service: UserService
    profile_service: ProfileService
    timesheet_service: TimesheetService
    vacation_service: VacationService
    dashboard_service: DashboardService

    # None when wired against in-memory repositories.
    conn: Optional[DatabaseConnection] = None


def wire(
    *,
    users_repo: UserRepository,
    timesheets_repo: TimesheetRepository,
    vacations_repo: VacationRepository,
    email_sender: EmailSender,
    dispatcher: Dispatcher,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build the service graph over any set of repositories."""

    notifier = NotificationService(users_repo, email_sender, dispatcher)
    return Container(
        users_repo=users_repo,
        timesheets_repo=timesheets_repo,
        vacations_repo=vacations_repo,
        email_sender=email_sender,
        dispatcher=dispatcher,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        profile_service=ProfileService(users_repo),
        timesheet_service=TimesheetService(timesheets_repo, notifier),
        vacation_service=VacationService(vacations_repo, users_repo, BalanceLedger(), notifier),
        dashboard_service=DashboardService(users_repo, timesheets_repo, vacations_repo),
        conn=conn,
    )


def build_container(
    *,
    db_config: dict,
    smtp_config: Optional[dict] = None,
    email_enabled: bool = False,
    notify_workers: int = 2,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    if email_enabled:
        sender: EmailSender = SMTPEmailSender(SMTPConfig.from_dict(smtp_config or {}))
    else:
        sender = LoggingEmailSender()

    return wire(
        users_repo=MySQLUserRepository(conn),
        timesheets_repo=MySQLTimesheetRepository(conn),
        vacations_repo=MySQLVacationRepository(conn),
        email_sender=sender,
        dispatcher=BackgroundDispatcher(max_workers=notify_workers),
        conn=conn,
    )
