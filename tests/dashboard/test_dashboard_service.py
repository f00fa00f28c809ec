from __future__ import annotations

from datetime import date, datetime

from src.timetracker.timetracker.core.enums import RequestType, ReviewDecision, Role


def _submitted_sheet(svc, actor, entries, week, now):
    ts = svc.create(actor, week_starting=week, entries=entries(week))
    return svc.submit(actor, ts.timesheet_id, now=now)


def test_employee_sees_only_own_stats(dashboard_service, timesheet_service, vacation_service, make_user, week_entries, fixed_now):
    emp = make_user(full_name="John Doe")
    other = make_user()
    _submitted_sheet(timesheet_service, emp, week_entries, date(2025, 3, 3), fixed_now)
    timesheet_service.create(emp, week_starting=date(2025, 3, 10), entries=week_entries())
    _submitted_sheet(timesheet_service, other, week_entries, date(2025, 3, 3), fixed_now)
    vacation_service.create(
        emp, request_type=RequestType.VACATION, start_date=date(2025, 6, 2), end_date=date(2025, 6, 4), reason="Trip"
    )

    dash = dashboard_service.get_dashboard(emp, now=fixed_now)

    assert dash.user.user_id == emp.user_id
    assert dash.timesheets.total == 2
    assert dash.timesheets.total_hours == 65.0
    assert dash.timesheets.pending == 1
    assert dash.vacations.total == 1
    assert dash.vacations.total_days == 3
    assert dash.vacations.pending == 1
    assert len(dash.recent_timesheets) == 2
    assert dash.manager is None
    assert dash.admin is None


def test_totals_exclude_previous_years(dashboard_service, timesheet_service, timesheets_repo, make_user, week_entries, fixed_now):
    emp = make_user()
    timesheets_repo.created_at = datetime(2024, 12, 20, 9, 0)
    _submitted_sheet(timesheet_service, emp, week_entries, date(2024, 12, 16), fixed_now)
    timesheets_repo.created_at = fixed_now
    timesheet_service.create(emp, week_starting=date(2025, 3, 10), entries=week_entries())

    dash = dashboard_service.get_dashboard(emp, now=fixed_now)

    assert dash.timesheets.total == 1
    assert dash.timesheets.total_hours == 32.5
    # Pending counts are not limited to the current year.
    assert dash.timesheets.pending == 1
    assert [t.week_starting for t in dash.recent_timesheets] == [date(2025, 3, 10)]


def test_manager_sees_team_queue_without_own_items(
    dashboard_service, timesheet_service, vacation_service, make_user, week_entries, fixed_now
):
    emp = make_user(full_name="John Doe", email="john@example.com")
    mgr = make_user(Role.MANAGER)
    _submitted_sheet(timesheet_service, emp, week_entries, date(2025, 3, 10), fixed_now)
    _submitted_sheet(timesheet_service, mgr, week_entries, date(2025, 3, 10), fixed_now)
    vacation_service.create(
        emp, request_type=RequestType.PERSONAL, start_date=date(2025, 5, 5), end_date=date(2025, 5, 5), reason="Errand"
    )

    dash = dashboard_service.get_dashboard(mgr, now=fixed_now)

    assert dash.manager is not None
    assert dash.manager.pending_timesheets == 1
    assert dash.manager.pending_vacations == 1
    assert dash.manager.recent_timesheets[0].employee_name == "John Doe"
    assert dash.manager.recent_timesheets[0].employee_email == "john@example.com"
    assert dash.manager.recent_vacations[0].request.user_id == emp.user_id
    assert dash.admin is None


def test_reviewed_items_leave_manager_queue(
    dashboard_service, timesheet_service, make_user, week_entries, fixed_now
):
    emp = make_user()
    mgr = make_user(Role.MANAGER)
    ts = _submitted_sheet(timesheet_service, emp, week_entries, date(2025, 3, 10), fixed_now)
    timesheet_service.review(mgr, ts.timesheet_id, decision=ReviewDecision.APPROVE, now=fixed_now)

    dash = dashboard_service.get_dashboard(mgr, now=fixed_now)

    assert dash.manager.pending_timesheets == 0
    assert dash.manager.recent_timesheets == []


def test_admin_counts_every_role(dashboard_service, make_user, fixed_now):
    admin = make_user(Role.ADMIN)
    make_user()
    make_user()

    dash = dashboard_service.get_dashboard(admin, now=fixed_now)

    assert dash.manager is not None
    assert dash.admin.total_users == 3
    assert dash.admin.total_timesheets == 0
    assert dash.admin.users_by_role == {Role.EMPLOYEE: 2, Role.MANAGER: 0, Role.ADMIN: 1}
