from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import Province, Role
from .model import Preferences, Profile, User, UserListing


class UserRepository(Protocol):
    """Repository interface for User and its Profile.

    Note (DIP): services depend on this interface, never on a concrete DB.
    Users returned here always carry their Profile when one exists.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_profile(self, user_id: int) -> Optional[Profile]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        role: Role,
        full_name: str,
        province: Province,
        vacation_balance: int,
        accrued_days: int,
        preferences: Preferences,
    ) -> int:
        """Insert the user and its profile together."""

        raise NotImplementedError

    def update_user(self, user_id: int, *, email: Optional[str] = None, role: Optional[Role] = None) -> bool:
        raise NotImplementedError

    def update_profile(
        self,
        user_id: int,
        *,
        full_name: Optional[str] = None,
        province: Optional[Province] = None,
        vacation_balance: Optional[int] = None,
        preferences: Optional[Preferences] = None,
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        """Delete the user; profile, timesheets and requests cascade."""

        raise NotImplementedError

    def list_with_counts(self) -> Sequence[UserListing]:
        raise NotImplementedError

    def list_by_roles(self, roles: Sequence[Role]) -> Sequence[User]:
        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError

    def count_by_role(self) -> Mapping[Role, int]:
        raise NotImplementedError
