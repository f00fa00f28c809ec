from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from ..core.enums import Province, Role, Theme, TimeFormat


@dataclass(frozen=True)
class Preferences:
    """Per-user display and notification preferences."""

    email_notifications: bool = True
    time_format: TimeFormat = TimeFormat.H24
    theme: Theme = Theme.LIGHT

    def merge(self, update: "PreferencesUpdate") -> "Preferences":
        """Return a copy with only the fields present in `update` replaced."""

        changes: dict[str, Any] = {}
        if update.email_notifications is not None:
            changes["email_notifications"] = bool(update.email_notifications)
        if update.time_format is not None:
            changes["time_format"] = TimeFormat(update.time_format)
        if update.theme is not None:
            changes["theme"] = Theme(update.theme)
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "email_notifications": self.email_notifications,
            "time_format": self.time_format.value,
            "theme": self.theme.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Preferences":
        # Unknown or missing keys fall back to defaults.
        data = data or {}
        base = cls()
        return base.merge(
            PreferencesUpdate(
                email_notifications=data.get("email_notifications"),
                time_format=_enum_or_none(TimeFormat, data.get("time_format")),
                theme=_enum_or_none(Theme, data.get("theme")),
            )
        )


@dataclass(frozen=True)
class PreferencesUpdate:
    email_notifications: Optional[bool] = None
    time_format: Optional[TimeFormat] = None
    theme: Optional[Theme] = None


def _enum_or_none(enum_cls, value):
    try:
        return enum_cls(value) if value is not None else None
    except ValueError:
        return None


@dataclass(frozen=True)
class Profile:
    user_id: int
    full_name: str
    province: Province
    vacation_balance: int
    accrued_days: int = 0
    used_days: int = 0
    preferences: Preferences = field(default_factory=Preferences)


@dataclass(frozen=True)
class User:
    """Domain entity: User with its (optional, joined) Profile.

    Note: Plain data object, no DB access code here.
    """

    user_id: int
    email: str
    password_hash: str
    role: Role
    created_at: Optional[datetime] = None
    profile: Optional[Profile] = None

    @property
    def display_name(self) -> str:
        return self.profile.full_name if self.profile else self.email


@dataclass(frozen=True)
class UserListing:
    """Admin view row: user plus how many timesheets/requests they own."""

    user: User
    timesheet_count: int = 0
    vacation_request_count: int = 0
