"""Flask plumbing shared by the JSON controllers."""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from enum import Enum
from functools import wraps
from typing import Any, Mapping, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InsufficientPermissionError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from ..core.permissions import Actor, has_permission
from .datetime_utils import parse_hhmm, parse_iso_date

logger = logging.getLogger(__name__)

# Ordered most specific first.
_STATUS_BY_ERROR = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (InvalidStateError, 409),
    (ConflictError, 409),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        return jsonify({"error": str(e)}), status_for(e)

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500


# Session / identity
def sign_in(actor: Actor, *, remember: bool = False) -> None:
    session.clear()
    session.permanent = bool(remember)
    session["user_id"] = actor.user_id
    session["email"] = actor.email
    session["role"] = actor.role.value


def sign_out() -> None:
    session.clear()


def current_actor() -> Optional[Actor]:
    if "user_id" not in session:
        return None
    try:
        role = Role(session.get("role"))
    except ValueError:
        role = Role.EMPLOYEE
    return Actor(user_id=int(session["user_id"]), email=str(session.get("email") or ""), role=role)


def require_actor() -> Actor:
    actor = current_actor()
    if actor is None:
        raise AuthenticationError("Authentication required")
    return actor


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        require_actor()
        return view(*args, **kwargs)

    return wrapper


def role_required(role: Role):
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            actor = require_actor()
            if not has_permission(actor.role, role):
                raise InsufficientPermissionError(f"Access denied. {role.value.title()} role required.")
            return view(*args, **kwargs)

        return wrapper

    return decorator


# Request parsing
def json_body() -> Mapping[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def parse_date_field(data: Mapping[str, Any], field: str, *, required: bool = True) -> Optional[date]:
    raw = data.get(field)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    try:
        return parse_iso_date(str(raw)[:10])
    except ValueError:
        raise ValidationError(f"{field} must be a date (YYYY-MM-DD)")


def parse_time_field(data: Mapping[str, Any], field: str) -> time:
    raw = data.get(field)
    if raw in (None, ""):
        raise ValidationError(f"{field} is required")
    try:
        return parse_hhmm(str(raw)[:5])
    except ValueError:
        raise ValidationError(f"{field} must be a time (HH:MM)")


def parse_enum_field(data: Mapping[str, Any], field: str, enum_cls, *, required: bool = True):
    raw = data.get(field)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    value = str(raw).strip()
    for candidate in (value, value.upper(), value.lower()):
        try:
            return enum_cls(candidate)
        except ValueError:
            continue
    allowed = ", ".join(m.value for m in enum_cls)
    raise ValidationError(f"{field} must be one of: {allowed}")


def parse_int_field(data: Mapping[str, Any], field: str, *, required: bool = True) -> Optional[int]:
    raw = data.get(field)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a whole number")
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a whole number")


def parse_str_field(
    data: Mapping[str, Any],
    field: str,
    *,
    required: bool = True,
    default: Optional[str] = None,
) -> Optional[str]:
    """Text field as given; blank checks are left to the services."""

    raw = data.get(field)
    if raw is None:
        if required:
            raise ValidationError(f"{field} is required")
        return default
    if not isinstance(raw, str):
        raise ValidationError(f"{field} must be a string")
    return raw


def query_int(name: str, default: Optional[int] = None) -> Optional[int]:
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a whole number")


# Response shaping
def to_jsonable(value: Any) -> Any:
    """Dataclasses, enums and dates to plain JSON types."""

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, time):
        return value.strftime("%H:%M")
    if isinstance(value, Mapping):
        return {to_jsonable(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def page_json(page, serialize) -> dict:
    return {
        "items": [serialize(item) for item in page.items],
        "pagination": {
            "page": page.page,
            "limit": page.limit,
            "total": page.total,
            "pages": page.pages,
        },
    }
