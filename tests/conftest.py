from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Optional

import pytest
from werkzeug.security import generate_password_hash

from src.timetracker.timetracker.balances.ledger import BalanceLedger
from src.timetracker.timetracker.container import wire
from src.timetracker.timetracker.core.enums import Province, Role, TimesheetStatus, VacationStatus
from src.timetracker.timetracker.core.permissions import Actor
from src.timetracker.timetracker.dashboard.service import DashboardService
from src.timetracker.timetracker.notifications.dispatcher import InlineDispatcher
from src.timetracker.timetracker.notifications.service import NotificationService
from src.timetracker.timetracker.timesheets.model import NewTimesheetEntry, Timesheet, TimesheetSummary
from src.timetracker.timetracker.timesheets.service import TimesheetService
from src.timetracker.timetracker.users.model import Preferences, Profile, User, UserListing
from src.timetracker.timetracker.users.service import AuthService, ProfileService, UserService
from src.timetracker.timetracker.vacations.model import ApprovalOutcome, VacationRequest, VacationSummary
from src.timetracker.timetracker.vacations.service import VacationService

PASSWORD = "secret123"
FIXED_NOW = datetime(2025, 3, 14, 10, 0, 0)
# Cheap hash so the suite stays fast.
PASSWORD_HASH = generate_password_hash(PASSWORD, method="pbkdf2:sha256:1000")


class FakeUserRepo:
    def __init__(self):
        self._next_id = 1
        self.users: dict[int, User] = {}

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def get_by_email(self, email):
        email = (email or "").lower()
        return next((u for u in self.users.values() if u.email == email), None)

    def get_profile(self, user_id):
        user = self.users.get(int(user_id))
        return user.profile if user else None

    def create_user(self, *, email, password_hash, role, full_name, province, vacation_balance, accrued_days, preferences):
        uid = self._next_id
        self._next_id += 1
        self.users[uid] = User(
            user_id=uid,
            email=email.lower(),
            password_hash=password_hash,
            role=role,
            created_at=FIXED_NOW,
            profile=Profile(
                user_id=uid,
                full_name=full_name,
                province=province,
                vacation_balance=int(vacation_balance),
                accrued_days=int(accrued_days),
                used_days=0,
                preferences=preferences,
            ),
        )
        return uid

    def update_user(self, user_id, *, email=None, role=None):
        user = self.users.get(int(user_id))
        if not user:
            return False
        changes = {}
        if email is not None:
            changes["email"] = email.lower()
        if role is not None:
            changes["role"] = role
        self.users[user.user_id] = replace(user, **changes)
        return True

    def update_profile(self, user_id, *, full_name=None, province=None, vacation_balance=None, preferences=None):
        user = self.users.get(int(user_id))
        if not user or not user.profile:
            return False
        changes = {}
        if full_name is not None:
            changes["full_name"] = full_name
        if province is not None:
            changes["province"] = province
        if vacation_balance is not None:
            changes["vacation_balance"] = int(vacation_balance)
        if preferences is not None:
            changes["preferences"] = preferences
        self.users[user.user_id] = replace(user, profile=replace(user.profile, **changes))
        return True

    def debit(self, user_id, days):
        user = self.users.get(int(user_id))
        if not user or not user.profile or user.profile.vacation_balance < days:
            return False
        profile = replace(
            user.profile,
            vacation_balance=user.profile.vacation_balance - days,
            used_days=user.profile.used_days + days,
        )
        self.users[user.user_id] = replace(user, profile=profile)
        return True

    def delete_by_id(self, user_id):
        return self.users.pop(int(user_id), None) is not None

    def list_with_counts(self):
        return [UserListing(user=u) for u in sorted(self.users.values(), key=lambda u: u.user_id)]

    def list_by_roles(self, roles):
        return [u for u in sorted(self.users.values(), key=lambda u: u.user_id) if u.role in roles]

    def count_all(self):
        return len(self.users)

    def count_by_role(self):
        out: dict[Role, int] = {}
        for u in self.users.values():
            out[u.role] = out.get(u.role, 0) + 1
        return out


class FakeTimesheetRepo:
    def __init__(self):
        self._next_id = 1
        self.rows: dict[int, Timesheet] = {}
        self.created_at = FIXED_NOW

    def create(self, *, user_id, week_starting, entries, total_hours):
        if self.get_for_week(user_id, week_starting):
            return None
        tid = self._next_id
        self._next_id += 1
        self.rows[tid] = Timesheet(
            timesheet_id=tid,
            user_id=int(user_id),
            week_starting=week_starting,
            status=TimesheetStatus.DRAFT,
            total_hours=total_hours,
            entries=tuple(replace(e, entry_id=i + 1) for i, e in enumerate(entries)),
            created_at=self.created_at,
        )
        return tid

    def get(self, timesheet_id):
        return self.rows.get(int(timesheet_id))

    def get_for_week(self, user_id, week_starting):
        return next(
            (t for t in self.rows.values() if t.user_id == int(user_id) and t.week_starting == week_starting),
            None,
        )

    def _for_user(self, user_id, status=None):
        rows = [t for t in self.rows.values() if t.user_id == int(user_id) and (status is None or t.status == status)]
        return sorted(rows, key=lambda t: t.week_starting, reverse=True)

    def list_for_user(self, user_id, *, status=None, limit=10, offset=0):
        return self._for_user(user_id, status)[offset : offset + limit]

    def count_for_user(self, user_id, *, status=None):
        return len(self._for_user(user_id, status))

    def _submitted(self, exclude_user_id=None):
        rows = [
            t
            for t in self.rows.values()
            if t.status == TimesheetStatus.SUBMITTED and (exclude_user_id is None or t.user_id != exclude_user_id)
        ]
        return sorted(rows, key=lambda t: (t.submitted_at, t.timesheet_id), reverse=True)

    def list_submitted(self, *, exclude_user_id=None, limit=10, offset=0):
        return self._submitted(exclude_user_id)[offset : offset + limit]

    def count_submitted(self, *, exclude_user_id=None):
        return len(self._submitted(exclude_user_id))

    def replace_entries(self, timesheet_id, *, entries, total_hours):
        ts = self.rows.get(int(timesheet_id))
        if not ts or ts.status != TimesheetStatus.DRAFT:
            return False
        self.rows[ts.timesheet_id] = replace(ts, entries=tuple(entries), total_hours=total_hours)
        return True

    def mark_submitted(self, timesheet_id, *, submitted_at):
        ts = self.rows.get(int(timesheet_id))
        if not ts or ts.status != TimesheetStatus.DRAFT:
            return False
        self.rows[ts.timesheet_id] = replace(ts, status=TimesheetStatus.SUBMITTED, submitted_at=submitted_at)
        return True

    def decide(self, timesheet_id, *, status, reviewer_id, reviewed_at, rejection_reason=None):
        ts = self.rows.get(int(timesheet_id))
        if not ts or ts.status != TimesheetStatus.SUBMITTED:
            return False
        self.rows[ts.timesheet_id] = replace(
            ts,
            status=status,
            approved_by_id=reviewer_id,
            reviewed_at=reviewed_at,
            approved_at=reviewed_at if status == TimesheetStatus.APPROVED else None,
            rejection_reason=rejection_reason,
        )
        return True

    def delete(self, timesheet_id):
        ts = self.rows.get(int(timesheet_id))
        if not ts or ts.status == TimesheetStatus.APPROVED:
            return False
        del self.rows[ts.timesheet_id]
        return True

    def summarize_for_user(self, user_id, *, since):
        out: dict[TimesheetStatus, TimesheetSummary] = {}
        for t in self.rows.values():
            if t.user_id != int(user_id) or t.created_at < since:
                continue
            s = out.get(t.status, TimesheetSummary())
            out[t.status] = TimesheetSummary(count=s.count + 1, total_hours=s.total_hours + t.total_hours)
        return out

    def list_recent_for_user(self, user_id, *, since, limit):
        rows = [t for t in self.rows.values() if t.user_id == int(user_id) and t.created_at >= since]
        return sorted(rows, key=lambda t: (t.created_at, t.timesheet_id), reverse=True)[:limit]

    def count_all(self):
        return len(self.rows)


class FakeVacationRepo:
    """Approval debits the balance on the user fake, all-or-nothing."""

    def __init__(self, users: FakeUserRepo):
        self._users = users
        self._next_id = 1
        self.rows: dict[int, VacationRequest] = {}
        self.created_at = FIXED_NOW

    def create(self, *, user_id, request_type, start_date, end_date, days_requested, reason, submitted_at):
        rid = self._next_id
        self._next_id += 1
        self.rows[rid] = VacationRequest(
            request_id=rid,
            user_id=int(user_id),
            request_type=request_type,
            start_date=start_date,
            end_date=end_date,
            days_requested=days_requested,
            status=VacationStatus.PENDING,
            reason=reason,
            submitted_at=submitted_at,
            created_at=self.created_at,
        )
        return rid

    def get(self, request_id):
        return self.rows.get(int(request_id))

    def find_overlapping(self, user_id, start_date, end_date, *, exclude_request_id=None):
        for r in sorted(self.rows.values(), key=lambda r: r.start_date):
            if r.user_id != int(user_id) or r.request_id == exclude_request_id:
                continue
            if r.status not in (VacationStatus.PENDING, VacationStatus.APPROVED):
                continue
            if r.start_date <= end_date and start_date <= r.end_date:
                return r
        return None

    def _filter(self, user_id=None, status=None):
        rows = [
            r
            for r in self.rows.values()
            if (user_id is None or r.user_id == int(user_id)) and (status is None or r.status == status)
        ]
        return sorted(rows, key=lambda r: (r.submitted_at, r.request_id), reverse=True)

    def list_requests(self, *, user_id=None, status=None, limit=10, offset=0):
        return self._filter(user_id, status)[offset : offset + limit]

    def count_requests(self, *, user_id=None, status=None):
        return len(self._filter(user_id, status))

    def _pending(self, exclude_user_id=None):
        return [r for r in self._filter(status=VacationStatus.PENDING) if r.user_id != exclude_user_id]

    def list_pending(self, *, exclude_user_id=None, limit=10):
        return self._pending(exclude_user_id)[:limit]

    def count_pending(self, *, exclude_user_id=None):
        return len(self._pending(exclude_user_id))

    def update_pending(self, request_id, *, request_type, start_date, end_date, days_requested, reason):
        r = self.rows.get(int(request_id))
        if not r or r.status != VacationStatus.PENDING:
            return False
        self.rows[r.request_id] = replace(
            r,
            request_type=request_type,
            start_date=start_date,
            end_date=end_date,
            days_requested=days_requested,
            reason=reason,
        )
        return True

    def approve(self, request_id, *, reviewer_id, reviewed_at, comments, debit=None):
        r = self.rows.get(int(request_id))
        if not r or r.status != VacationStatus.PENDING:
            return ApprovalOutcome.STALE
        if debit is not None and debit.days > 0 and not self._users.debit(debit.user_id, debit.days):
            return ApprovalOutcome.INSUFFICIENT_BALANCE
        self.rows[r.request_id] = replace(
            r,
            status=VacationStatus.APPROVED,
            reviewed_by_id=reviewer_id,
            reviewed_at=reviewed_at,
            review_comments=comments,
        )
        return ApprovalOutcome.APPROVED

    def reject(self, request_id, *, reviewer_id, reviewed_at, comments):
        r = self.rows.get(int(request_id))
        if not r or r.status != VacationStatus.PENDING:
            return False
        self.rows[r.request_id] = replace(
            r,
            status=VacationStatus.REJECTED,
            reviewed_by_id=reviewer_id,
            reviewed_at=reviewed_at,
            review_comments=comments,
        )
        return True

    def delete_pending(self, request_id):
        r = self.rows.get(int(request_id))
        if not r or r.status != VacationStatus.PENDING:
            return False
        del self.rows[r.request_id]
        return True

    def summarize_for_user(self, user_id, *, since):
        out: dict[VacationStatus, VacationSummary] = {}
        for r in self.rows.values():
            if r.user_id != int(user_id) or r.created_at < since:
                continue
            s = out.get(r.status, VacationSummary())
            out[r.status] = VacationSummary(count=s.count + 1, total_days=s.total_days + r.days_requested)
        return out

    def list_recent_for_user(self, user_id, *, since, limit):
        rows = [r for r in self.rows.values() if r.user_id == int(user_id) and r.created_at >= since]
        return sorted(rows, key=lambda r: (r.created_at, r.request_id), reverse=True)[:limit]

    def count_all(self):
        return len(self.rows)


class RecordingSender:
    def __init__(self):
        self.sent: list[tuple[list[str], object, dict]] = []
        self.fail = False

    def notify(self, recipients, kind, payload):
        if self.fail:
            raise RuntimeError("SMTP down")
        self.sent.append((list(recipients), kind, dict(payload)))
        return True

    def verify(self):
        return not self.fail

    def kinds(self):
        return [kind for _, kind, _ in self.sent]

    def recipients(self, kind=None):
        return [r for rs, k, _ in self.sent if kind is None or k == kind for r in rs]


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def users_repo() -> FakeUserRepo:
    return FakeUserRepo()


@pytest.fixture
def timesheets_repo() -> FakeTimesheetRepo:
    return FakeTimesheetRepo()


@pytest.fixture
def vacations_repo(users_repo) -> FakeVacationRepo:
    return FakeVacationRepo(users_repo)


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def notifier(users_repo, sender) -> NotificationService:
    return NotificationService(users_repo, sender, InlineDispatcher())


@pytest.fixture
def timesheet_service(timesheets_repo, notifier) -> TimesheetService:
    return TimesheetService(timesheets_repo, notifier)


@pytest.fixture
def vacation_service(vacations_repo, users_repo, notifier) -> VacationService:
    return VacationService(vacations_repo, users_repo, BalanceLedger(), notifier)


@pytest.fixture
def dashboard_service(users_repo, timesheets_repo, vacations_repo) -> DashboardService:
    return DashboardService(users_repo, timesheets_repo, vacations_repo)


@pytest.fixture
def auth_service(users_repo) -> AuthService:
    return AuthService(users_repo)


@pytest.fixture
def user_service(users_repo) -> UserService:
    return UserService(users_repo)


@pytest.fixture
def profile_service(users_repo) -> ProfileService:
    return ProfileService(users_repo)


@pytest.fixture
def make_user(users_repo):
    """Create a user directly in the fake repo and return its Actor."""

    counter = {"n": 0}

    def _make(
        role: Role = Role.EMPLOYEE,
        *,
        balance: int = 15,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        email_notifications: bool = True,
    ) -> Actor:
        counter["n"] += 1
        email = email or f"{role.value.lower()}{counter['n']}@example.com"
        uid = users_repo.create_user(
            email=email,
            password_hash=PASSWORD_HASH,
            role=role,
            full_name=full_name or f"{role.value.title()} {counter['n']}",
            province=Province.ONTARIO,
            vacation_balance=balance,
            accrued_days=balance,
            preferences=Preferences(email_notifications=email_notifications),
        )
        return Actor(user_id=uid, email=email, role=role)

    return _make


@pytest.fixture
def week_entries():
    """Entries for the week of Monday 2025-03-10: 7 + 7 + 7 + 7 + 4.5 hours."""

    def _entries(week_starting: date = date(2025, 3, 10)):
        days = [week_starting + timedelta(days=i) for i in range(5)]
        out = [
            NewTimesheetEntry(work_date=d, start_time=time(9, 0), end_time=time(16, 30), break_minutes=30)
            for d in days[:4]
        ]
        out.append(NewTimesheetEntry(work_date=days[4], start_time=time(9, 0), end_time=time(13, 30)))
        return out

    return _entries


@pytest.fixture
def container(users_repo, timesheets_repo, vacations_repo, sender):
    return wire(
        users_repo=users_repo,
        timesheets_repo=timesheets_repo,
        vacations_repo=vacations_repo,
        email_sender=sender,
        dispatcher=InlineDispatcher(),
    )


@pytest.fixture
def app(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    from src.timetracker.timetracker.main import create_app

    flask_app = create_app(container)
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(actor: Actor, password: str = PASSWORD):
        resp = client.post("/api/auth/login", json={"email": actor.email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        return resp

    return _login
