from __future__ import annotations

import json
from typing import Mapping, Optional, Sequence

from ..core.enums import Province, Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_int, db_cursor, fetchall, fetchone, in_clause, load_json
from .model import Preferences, Profile, User, UserListing
from .repository import UserRepository

_USER_COLUMNS = """
    u.user_id, u.email, u.password_hash, u.role, u.created_at,
    p.full_name, p.province, p.vacation_balance, p.accrued_days, p.used_days, p.preferences
"""


def _profile_from_row(r: dict) -> Optional[Profile]:
    if r.get("full_name") is None:
        return None
    return Profile(
        user_id=int(r["user_id"]),
        full_name=r["full_name"],
        province=Province(r["province"]),
        vacation_balance=as_int(r.get("vacation_balance")),
        accrued_days=as_int(r.get("accrued_days")),
        used_days=as_int(r.get("used_days")),
        preferences=Preferences.from_dict(load_json(r.get("preferences"))),
    )


def _user_from_row(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        email=r["email"],
        password_hash=r["password_hash"],
        role=Role(r["role"]),
        created_at=r.get("created_at"),
        profile=_profile_from_row(r),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users u
                LEFT JOIN profiles p ON p.user_id = u.user_id
                WHERE u.user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _user_from_row(row) if row else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users u
                LEFT JOIN profiles p ON p.user_id = u.user_id
                WHERE u.email=%s
                """,
                (email.lower(),),
            )
            row = fetchone(cur)
            return _user_from_row(row) if row else None

    def get_profile(self, user_id: int) -> Optional[Profile]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, full_name, province, vacation_balance, accrued_days, used_days, preferences
                FROM profiles
                WHERE user_id=%s
                """,
                (int(user_id),),
            )
            row = fetchone(cur)
            return _profile_from_row(row) if row else None

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO users(email, password_hash, role) VALUES(%s,%s,%s)",
                (email.lower(), password_hash, role.value),
            )
            user_id = int(cur.lastrowid)
            cur.execute(
                """
                INSERT INTO profiles(user_id, full_name, province, vacation_balance, accrued_days, used_days, preferences)
                VALUES(%s,%s,%s,%s,%s,0,%s)
                """,
                (
                    user_id,
                    full_name,
                    province.value,
                    int(vacation_balance),
                    int(accrued_days),
                    json.dumps(preferences.to_dict()),
                ),
            )
            return user_id

    def update_user(self, user_id: int, *, email: Optional[str] = None, role: Optional[Role] = None) -> bool:
        sets: list[str] = []
        params: list[object] = []
        if email is not None:
            sets.append("email=%s")
            params.append(email.lower())
        if role is not None:
            sets.append("role=%s")
            params.append(role.value)
        if not sets:
            return True

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE users SET {', '.join(sets)} WHERE user_id=%s",
                tuple(params + [int(user_id)]),
            )
            # MySQL reports 0 rows for a no-op update, so confirm existence instead.
            cur.execute("SELECT 1 AS found FROM users WHERE user_id=%s", (int(user_id),))
            return fetchone(cur) is not None

    def update_profile(
        self,
        user_id: int,
        *,
        full_name: Optional[str] = None,
        province: Optional[Province] = None,
        vacation_balance: Optional[int] = None,
        preferences: Optional[Preferences] = None,
    ) -> bool:
        sets: list[str] = []
        params: list[object] = []
        if full_name is not None:
            sets.append("full_name=%s")
            params.append(full_name)
        if province is not None:
            sets.append("province=%s")
            params.append(province.value)
        if vacation_balance is not None:
            sets.append("vacation_balance=%s")
            params.append(int(vacation_balance))
        if preferences is not None:
            sets.append("preferences=%s")
            params.append(json.dumps(preferences.to_dict()))
        if not sets:
            return True

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE profiles SET {', '.join(sets)} WHERE user_id=%s",
                tuple(params + [int(user_id)]),
            )
            cur.execute("SELECT 1 AS found FROM profiles WHERE user_id=%s", (int(user_id),))
            return fetchone(cur) is not None

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0

    def list_with_counts(self) -> Sequence[UserListing]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS},
                       (SELECT COUNT(*) FROM timesheets t WHERE t.user_id = u.user_id) AS timesheet_count,
                       (SELECT COUNT(*) FROM vacation_requests v WHERE v.user_id = u.user_id) AS vacation_request_count
                FROM users u
                LEFT JOIN profiles p ON p.user_id = u.user_id
                ORDER BY u.created_at DESC, u.user_id DESC
                """
            )
            return [
                UserListing(
                    user=_user_from_row(r),
                    timesheet_count=as_int(r.get("timesheet_count")),
                    vacation_request_count=as_int(r.get("vacation_request_count")),
                )
                for r in fetchall(cur)
            ]

    def list_by_roles(self, roles: Sequence[Role]) -> Sequence[User]:
        if not roles:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_USER_COLUMNS}
                FROM users u
                LEFT JOIN profiles p ON p.user_id = u.user_id
                WHERE u.role IN ({in_clause(roles)})
                ORDER BY u.user_id
                """,
                tuple(r.value for r in roles),
            )
            return [_user_from_row(r) for r in fetchall(cur)]

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM users")
            row = fetchone(cur)
            return as_int(row["n"] if row else None)

    def count_by_role(self) -> Mapping[Role, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT role, COUNT(*) AS n FROM users GROUP BY role")
            return {Role(r["role"]): as_int(r["n"]) for r in fetchall(cur)}
