from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import login_required, require_actor, to_jsonable
from ..container import Container
from ..timesheets.controller import timesheet_json
from ..users.controller import user_json


def register(app: Flask, container: Container) -> None:
    @app.route("/api/dashboard", methods=["GET"], endpoint="dashboard")
    @login_required
    def dashboard():
        d = container.dashboard_service.get_dashboard(require_actor())

        manager = None
        if d.manager is not None:
            manager = {
                "pending_timesheets": d.manager.pending_timesheets,
                "pending_vacations": d.manager.pending_vacations,
                "recent_timesheets": [
                    dict(timesheet_json(p.timesheet), employee_name=p.employee_name, employee_email=p.employee_email)
                    for p in d.manager.recent_timesheets
                ],
                "recent_vacations": [
                    dict(to_jsonable(p.request), employee_name=p.employee_name, employee_email=p.employee_email)
                    for p in d.manager.recent_vacations
                ],
            }

        return jsonify(
            {
                "user": user_json(d.user),
                "stats": {
                    "timesheets": to_jsonable(d.timesheets),
                    "vacations": to_jsonable(d.vacations),
                },
                "recent": {
                    "timesheets": [timesheet_json(t) for t in d.recent_timesheets],
                    "vacation_requests": [to_jsonable(v) for v in d.recent_vacations],
                },
                "manager": manager,
                "admin": to_jsonable(d.admin),
            }
        )
