from __future__ import annotations

from flask import Flask, jsonify

from ..common.http import (
    json_body,
    login_required,
    parse_enum_field,
    parse_int_field,
    parse_str_field,
    require_actor,
    role_required,
    sign_in,
    sign_out,
    to_jsonable,
)
from ..core.constants import DEFAULT_VACATION_BALANCE
from ..core.enums import Role, Theme, TimeFormat
from ..core.exceptions import ValidationError
from ..container import Container
from .model import PreferencesUpdate, User, UserListing


def user_json(user: User) -> dict:
    """Public view of a user; never includes the password hash."""

    return {
        "id": user.user_id,
        "email": user.email,
        "role": user.role.value,
        "created_at": to_jsonable(user.created_at),
        "profile": to_jsonable(user.profile),
    }


def _listing_json(row: UserListing) -> dict:
    data = user_json(row.user)
    data["counts"] = {
        "timesheets": row.timesheet_count,
        "vacation_requests": row.vacation_request_count,
    }
    return data


def _preferences_update(raw) -> PreferencesUpdate:
    if not isinstance(raw, dict):
        raise ValidationError("preferences must be an object")
    email_notifications = raw.get("email_notifications")
    if email_notifications is not None and not isinstance(email_notifications, bool):
        raise ValidationError("email_notifications must be true or false")
    return PreferencesUpdate(
        email_notifications=email_notifications,
        time_format=parse_enum_field(raw, "time_format", TimeFormat, required=False),
        theme=parse_enum_field(raw, "theme", Theme, required=False),
    )


def register(app: Flask, container: Container) -> None:
    # Auth
    @app.route("/api/auth/register", methods=["POST"], endpoint="auth_register")
    def auth_register():
        data = json_body()
        user = container.auth_service.register(
            email=parse_str_field(data, "email", required=False, default=""),
            password=parse_str_field(data, "password", required=False, default=""),
            full_name=parse_str_field(data, "full_name", required=False, default=""),
            province=parse_str_field(data, "province", required=False, default=""),
        )
        return jsonify({"user": user_json(user), "message": "Registration successful"}), 201

    @app.route("/api/auth/login", methods=["POST"], endpoint="auth_login")
    def auth_login():
        data = json_body()
        actor = container.auth_service.authenticate(
            parse_str_field(data, "email", required=False, default=""),
            parse_str_field(data, "password", required=False, default=""),
        )
        sign_in(actor, remember=bool(data.get("remember_me")))
        user = container.auth_service.current_user(actor)
        return jsonify({"user": user_json(user), "message": "Login successful"})

    @app.route("/api/auth/logout", methods=["POST"], endpoint="auth_logout")
    def auth_logout():
        sign_out()
        return jsonify({"message": "Logged out"})

    @app.route("/api/auth/me", methods=["GET"], endpoint="auth_me")
    @login_required
    def auth_me():
        user = container.auth_service.current_user(require_actor())
        return jsonify({"user": user_json(user)})

    # Profile
    @app.route("/api/profile", methods=["GET"], endpoint="profile_get")
    @login_required
    def profile_get():
        user = container.profile_service.get_profile(require_actor())
        return jsonify({"user": user_json(user)})

    @app.route("/api/profile", methods=["PUT"], endpoint="profile_update")
    @login_required
    def profile_update():
        data = json_body()
        prefs = data.get("preferences")
        user = container.profile_service.update_profile(
            require_actor(),
            full_name=parse_str_field(data, "full_name", required=False),
            province=parse_str_field(data, "province", required=False),
            preferences=_preferences_update(prefs) if prefs is not None else None,
        )
        return jsonify({"user": user_json(user), "message": "Profile updated"})

    # Admin: users
    @app.route("/api/users", methods=["GET"], endpoint="users_list")
    @role_required(Role.ADMIN)
    def users_list():
        rows = container.user_service.list_users(require_actor())
        return jsonify({"users": [_listing_json(r) for r in rows]})

    @app.route("/api/users", methods=["POST"], endpoint="users_create")
    @role_required(Role.ADMIN)
    def users_create():
        data = json_body()
        balance = parse_int_field(data, "vacation_balance", required=False)
        user = container.user_service.create_user(
            require_actor(),
            email=parse_str_field(data, "email", required=False, default=""),
            password=parse_str_field(data, "password", required=False, default=""),
            full_name=parse_str_field(data, "full_name", required=False, default=""),
            province=parse_str_field(data, "province", required=False, default=""),
            role=parse_enum_field(data, "role", Role, required=False) or Role.EMPLOYEE,
            vacation_balance=DEFAULT_VACATION_BALANCE if balance is None else balance,
        )
        return jsonify({"user": user_json(user), "message": "User created"}), 201

    @app.route("/api/users/<int:user_id>", methods=["GET"], endpoint="users_get")
    @role_required(Role.ADMIN)
    def users_get(user_id: int):
        user = container.user_service.get_user(require_actor(), user_id)
        return jsonify({"user": user_json(user)})

    @app.route("/api/users/<int:user_id>", methods=["PUT"], endpoint="users_update")
    @role_required(Role.ADMIN)
    def users_update(user_id: int):
        data = json_body()
        user = container.user_service.update_user(
            require_actor(),
            user_id,
            email=parse_str_field(data, "email", required=False),
            full_name=parse_str_field(data, "full_name", required=False),
            province=parse_str_field(data, "province", required=False),
            role=parse_enum_field(data, "role", Role, required=False),
            vacation_balance=parse_int_field(data, "vacation_balance", required=False),
        )
        return jsonify({"user": user_json(user), "message": "User updated"})

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="users_delete")
    @role_required(Role.ADMIN)
    def users_delete(user_id: int):
        container.user_service.delete_user(require_actor(), user_id)
        return jsonify({"message": "User deleted"})
