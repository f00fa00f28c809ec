from __future__ import annotations

from typing import Any, List, Mapping

from flask import Flask, jsonify, request

from ..common.http import (
    json_body,
    login_required,
    page_json,
    parse_date_field,
    parse_enum_field,
    parse_int_field,
    parse_str_field,
    parse_time_field,
    query_int,
    require_actor,
    to_jsonable,
)
from ..core.enums import ReviewDecision, TimesheetStatus
from ..core.exceptions import ValidationError
from ..container import Container
from .model import NewTimesheetEntry, Timesheet


def timesheet_json(ts: Timesheet) -> dict:
    data = to_jsonable(ts)
    data["week_ending"] = ts.week_ending.isoformat()
    return data


def _parse_entries(data: Mapping[str, Any]) -> List[NewTimesheetEntry]:
    raw = data.get("entries")
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValidationError("entries must be a list")

    entries: List[NewTimesheetEntry] = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValidationError("Each entry must be an object")
        entries.append(
            NewTimesheetEntry(
                work_date=parse_date_field(item, "work_date"),
                start_time=parse_time_field(item, "start_time"),
                end_time=parse_time_field(item, "end_time"),
                break_minutes=parse_int_field(item, "break_minutes", required=False) or 0,
                notes=parse_str_field(item, "notes", required=False),
            )
        )
    return entries


def register(app: Flask, container: Container) -> None:
    svc = container.timesheet_service

    @app.route("/api/timesheets", methods=["GET"], endpoint="timesheets_list")
    @login_required
    def timesheets_list():
        status = parse_enum_field(request.args, "status", TimesheetStatus, required=False)
        page = svc.list_for_user(
            require_actor(),
            status=status,
            page=query_int("page", 1),
            limit=query_int("limit"),
        )
        return jsonify(page_json(page, timesheet_json))

    @app.route("/api/timesheets", methods=["POST"], endpoint="timesheets_create")
    @login_required
    def timesheets_create():
        data = json_body()
        ts = svc.create(
            require_actor(),
            week_starting=parse_date_field(data, "week_starting"),
            entries=_parse_entries(data),
        )
        return jsonify({"timesheet": timesheet_json(ts), "message": "Timesheet created"}), 201

    @app.route("/api/timesheets/review", methods=["GET"], endpoint="timesheets_review_queue")
    @login_required
    def timesheets_review_queue():
        page = svc.list_for_review(require_actor(), page=query_int("page", 1), limit=query_int("limit"))
        return jsonify(page_json(page, timesheet_json))

    @app.route("/api/timesheets/<int:timesheet_id>", methods=["GET"], endpoint="timesheets_get")
    @login_required
    def timesheets_get(timesheet_id: int):
        ts = svc.get(require_actor(), timesheet_id)
        return jsonify({"timesheet": timesheet_json(ts)})

    @app.route("/api/timesheets/<int:timesheet_id>", methods=["PUT"], endpoint="timesheets_update")
    @login_required
    def timesheets_update(timesheet_id: int):
        ts = svc.edit(require_actor(), timesheet_id, entries=_parse_entries(json_body()))
        return jsonify({"timesheet": timesheet_json(ts), "message": "Timesheet updated"})

    @app.route("/api/timesheets/<int:timesheet_id>", methods=["DELETE"], endpoint="timesheets_delete")
    @login_required
    def timesheets_delete(timesheet_id: int):
        svc.delete(require_actor(), timesheet_id)
        return jsonify({"message": "Timesheet deleted"})

    @app.route("/api/timesheets/<int:timesheet_id>/submit", methods=["POST"], endpoint="timesheets_submit")
    @login_required
    def timesheets_submit(timesheet_id: int):
        ts = svc.submit(require_actor(), timesheet_id)
        return jsonify({"timesheet": timesheet_json(ts), "message": "Timesheet submitted for approval"})

    @app.route("/api/timesheets/<int:timesheet_id>/approve", methods=["POST"], endpoint="timesheets_approve")
    @login_required
    def timesheets_approve(timesheet_id: int):
        data = json_body()
        decision = parse_enum_field(data, "action", ReviewDecision)
        ts = svc.review(
            require_actor(),
            timesheet_id,
            decision=decision,
            comments=parse_str_field(data, "comments", required=False),
        )
        verb = "approved" if ts.status == TimesheetStatus.APPROVED else "rejected"
        return jsonify({"timesheet": timesheet_json(ts), "message": f"Timesheet {verb}"})
