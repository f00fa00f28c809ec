from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .enums import Role

_ROLE_RANK = {
    Role.EMPLOYEE: 0,
    Role.MANAGER: 1,
    Role.ADMIN: 2,
}


@dataclass(frozen=True)
class Actor:
    """The authenticated principal performing an operation."""

    user_id: int
    email: str
    role: Role


def role_rank(role: Union[Role, str, None]) -> int:
    """Rank of a role; anything unknown ranks as EMPLOYEE."""

    try:
        return _ROLE_RANK[Role(role)]
    except (ValueError, KeyError):
        return 0


def has_permission(actor_role: Union[Role, str, None], required_role: Union[Role, str]) -> bool:
    return role_rank(actor_role) >= role_rank(required_role)
