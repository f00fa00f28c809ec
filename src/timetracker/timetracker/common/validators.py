from __future__ import annotations

import re
from typing import Optional

from ..core.enums import Province
from ..core.exceptions import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def require_max_length(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    if value is not None and len(value) > max_len:
        raise ValidationError(f"{field_name} cannot exceed {max_len} characters")
    return value


def normalize_email(value: Optional[str]) -> str:
    email = require_non_empty(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    return email


def require_province(value: Optional[str]) -> Province:
    try:
        return Province(require_non_empty(value, "Province"))
    except ValueError:
        raise ValidationError("Please select a valid Canadian province")
