from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.http import (
    json_body,
    login_required,
    page_json,
    parse_date_field,
    parse_enum_field,
    parse_str_field,
    query_int,
    require_actor,
    to_jsonable,
)
from ..core.enums import RequestType, ReviewDecision, VacationStatus
from ..container import Container
from .model import VacationChanges


def register(app: Flask, container: Container) -> None:
    svc = container.vacation_service

    @app.route("/api/vacation/requests", methods=["GET"], endpoint="vacation_list")
    @login_required
    def vacation_list():
        page = svc.list_requests(
            require_actor(),
            status=parse_enum_field(request.args, "status", VacationStatus, required=False),
            user_id=query_int("user_id"),
            page=query_int("page", 1),
            limit=query_int("limit"),
        )
        return jsonify(page_json(page, to_jsonable))

    @app.route("/api/vacation/requests", methods=["POST"], endpoint="vacation_create")
    @login_required
    def vacation_create():
        data = json_body()
        req = svc.create(
            require_actor(),
            request_type=parse_enum_field(data, "request_type", RequestType),
            start_date=parse_date_field(data, "start_date"),
            end_date=parse_date_field(data, "end_date"),
            reason=parse_str_field(data, "reason", required=False, default=""),
        )
        return jsonify({"request": to_jsonable(req), "message": "Vacation request submitted"}), 201

    @app.route("/api/vacation/requests/<int:request_id>", methods=["GET"], endpoint="vacation_get")
    @login_required
    def vacation_get(request_id: int):
        return jsonify({"request": to_jsonable(svc.get(require_actor(), request_id))})

    @app.route("/api/vacation/requests/<int:request_id>", methods=["PUT"], endpoint="vacation_update")
    @login_required
    def vacation_update(request_id: int):
        data = json_body()
        changes = VacationChanges(
            request_type=parse_enum_field(data, "request_type", RequestType, required=False),
            start_date=parse_date_field(data, "start_date", required=False),
            end_date=parse_date_field(data, "end_date", required=False),
            reason=parse_str_field(data, "reason", required=False),
        )
        req = svc.update(require_actor(), request_id, changes)
        return jsonify({"request": to_jsonable(req), "message": "Vacation request updated"})

    @app.route("/api/vacation/requests/<int:request_id>", methods=["DELETE"], endpoint="vacation_delete")
    @login_required
    def vacation_delete(request_id: int):
        svc.delete(require_actor(), request_id)
        return jsonify({"message": "Vacation request deleted"})

    @app.route("/api/vacation/requests/<int:request_id>/approve", methods=["POST"], endpoint="vacation_review")
    @login_required
    def vacation_review(request_id: int):
        data = json_body()
        review = svc.review(
            require_actor(),
            request_id,
            decision=parse_enum_field(data, "action", ReviewDecision),
            comments=parse_str_field(data, "comments", required=False),
        )
        verb = "approved" if review.request.status == VacationStatus.APPROVED else "rejected"
        body = {"request": to_jsonable(review.request), "message": f"Vacation request {verb}"}
        if review.new_balance is not None:
            body["new_balance"] = review.new_balance
        return jsonify(body)
