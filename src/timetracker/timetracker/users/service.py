from __future__ import annotations

import logging
from typing import Optional, Sequence

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import normalize_email, require_max_length, require_min_length, require_non_empty, require_province
from ..core.constants import DEFAULT_VACATION_BALANCE, MAX_VACATION_BALANCE, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    ConflictError,
    InsufficientPermissionError,
    NotFoundError,
    ValidationError,
)
from ..core.permissions import Actor, has_permission
from .model import Preferences, PreferencesUpdate, User, UserListing
from .repository import UserRepository

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


def _require_balance(value: int) -> int:
    try:
        balance = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Vacation balance must be a whole number of days")
    if balance < 0:
        raise ValidationError("Vacation balance cannot be negative")
    if balance > MAX_VACATION_BALANCE:
        raise ValidationError(f"Vacation balance cannot exceed {MAX_VACATION_BALANCE} days")
    return balance


def _require_full_name(value: Optional[str]) -> str:
    name = require_non_empty(value, "Full name")
    require_max_length(name, "Full name", MAX_NAME_LENGTH)
    return name


def _create_account(
    users: UserRepository,
    *,
    email: str,
    password: str,
    full_name: str,
    province: str,
    role: Role,
    vacation_balance: int,
) -> User:
    email = normalize_email(email)
    require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
    full_name = _require_full_name(full_name)
    province_v = require_province(province)
    balance = _require_balance(vacation_balance)

    if users.get_by_email(email):
        raise ConflictError("User with this email already exists")

    user_id = users.create_user(
        email=email,
        password_hash=generate_password_hash(password),
        role=role,
        full_name=full_name,
        province=province_v,
        vacation_balance=balance,
        accrued_days=balance,
        preferences=Preferences(),
    )
    user = users.get_by_id(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


class AuthService:
    """Use cases: login, self-registration, current user."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> Actor:
        user = self._users.get_by_email((email or "").strip().lower())
        if not user:
            raise AuthenticationError("Invalid email or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # e.g. placeholder hashes or corrupted values
            ok = False

        if not ok:
            raise AuthenticationError("Invalid email or password")

        return Actor(user_id=user.user_id, email=user.email, role=user.role)

    def register(self, *, email: str, password: str, full_name: str, province: str) -> User:
        user = _create_account(
            self._users,
            email=email,
            password=password,
            full_name=full_name,
            province=province,
            role=Role.EMPLOYEE,
            vacation_balance=DEFAULT_VACATION_BALANCE,
        )
        logger.info("User registered: user_id=%s email=%s", user.user_id, user.email)
        return user

    def current_user(self, actor: Actor) -> User:
        user = self._users.get_by_id(actor.user_id)
        if not user:
            raise NotFoundError("User not found")
        return user


class UserService:
    """Use case: manage users (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    @staticmethod
    def _require_admin(actor: Actor) -> None:
        if not has_permission(actor.role, Role.ADMIN):
            raise InsufficientPermissionError("Access denied. Admin role required.")

    def list_users(self, actor: Actor) -> Sequence[UserListing]:
        self._require_admin(actor)
        return self._users.list_with_counts()

    def get_user(self, actor: Actor, user_id: int) -> User:
        self._require_admin(actor)
        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        return user

    def create_user(
        self,
        actor: Actor,
        *,
        email: str,
        password: str,
        full_name: str,
        province: str,
        role: Role,
        vacation_balance: int,
    ) -> User:
        self._require_admin(actor)
        user = _create_account(
            self._users,
            email=email,
            password=password,
            full_name=full_name,
            province=province,
            role=Role(role),
            vacation_balance=vacation_balance,
        )
        logger.info("User created by admin: user_id=%s role=%s admin=%s", user.user_id, user.role.value, actor.user_id)
        return user

    def update_user(
        self,
        actor: Actor,
        user_id: int,
        *,
        email: Optional[str] = None,
        full_name: Optional[str] = None,
        province: Optional[str] = None,
        role: Optional[Role] = None,
        vacation_balance: Optional[int] = None,
    ) -> User:
        """Admin edit, including the administrative vacation-balance override."""

        existing = self.get_user(actor, user_id)

        new_email = None
        if email is not None:
            new_email = normalize_email(email)
            if new_email != existing.email:
                taken = self._users.get_by_email(new_email)
                if taken and taken.user_id != existing.user_id:
                    raise ConflictError("Email already in use")

        # Validate everything before the first write.
        new_name = _require_full_name(full_name) if full_name is not None else None
        new_province = require_province(province) if province is not None else None
        new_balance = _require_balance(vacation_balance) if vacation_balance is not None else None

        self._users.update_user(
            existing.user_id,
            email=new_email,
            role=Role(role) if role is not None else None,
        )
        self._users.update_profile(
            existing.user_id,
            full_name=new_name,
            province=new_province,
            vacation_balance=new_balance,
        )

        if vacation_balance is not None:
            logger.info(
                "Vacation balance overridden: user_id=%s balance=%s admin=%s",
                existing.user_id,
                vacation_balance,
                actor.user_id,
            )
        return self.get_user(actor, existing.user_id)

    def delete_user(self, actor: Actor, user_id: int) -> None:
        self._require_admin(actor)
        if int(user_id) == actor.user_id:
            raise ValidationError("Cannot delete your own account")

        if not self._users.get_by_id(int(user_id)):
            raise NotFoundError("User not found")
        if not self._users.delete_by_id(int(user_id)):
            raise NotFoundError("User not found")
        logger.info("User deleted: user_id=%s admin=%s", user_id, actor.user_id)


class ProfileService:
    """Use case: a user reads and edits their own profile."""

    def __init__(self, users: UserRepository):
        self._users = users

    def get_profile(self, actor: Actor) -> User:
        user = self._users.get_by_id(actor.user_id)
        if not user or not user.profile:
            raise NotFoundError("Profile not found")
        return user

    def update_profile(
        self,
        actor: Actor,
        *,
        full_name: Optional[str] = None,
        province: Optional[str] = None,
        preferences: Optional[PreferencesUpdate] = None,
    ) -> User:
        current = self.get_profile(actor)

        merged = current.profile.preferences.merge(preferences) if preferences is not None else None
        self._users.update_profile(
            actor.user_id,
            full_name=_require_full_name(full_name) if full_name is not None else None,
            province=require_province(province) if province is not None else None,
            preferences=merged,
        )
        return self.get_profile(actor)
