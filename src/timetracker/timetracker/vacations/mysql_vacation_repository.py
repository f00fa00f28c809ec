from __future__ import annotations

from datetime import date, datetime
from typing import Mapping, Optional, Sequence

from ..balances.ledger import BalanceDebit
from ..core.enums import RequestType, VacationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_int, db_cursor, fetchall, fetchone, in_clause
from .model import ApprovalOutcome, VacationRequest, VacationSummary
from .repository import VacationRepository
from .rules import BLOCKING_STATUSES

_REQUEST_COLUMNS = """
    v.request_id, v.user_id, v.request_type, v.start_date, v.end_date, v.days_requested,
    v.status, v.reason, v.submitted_at, v.reviewed_at, v.reviewed_by_id, v.review_comments, v.created_at
"""


class _Rollback(Exception):
    """Abort the surrounding db_cursor transaction."""


def _request_from_row(r: dict) -> VacationRequest:
    return VacationRequest(
        request_id=int(r["request_id"]),
        user_id=int(r["user_id"]),
        request_type=RequestType(r["request_type"]),
        start_date=r["start_date"],
        end_date=r["end_date"],
        days_requested=as_int(r.get("days_requested")),
        status=VacationStatus(r["status"]),
        reason=r.get("reason") or "",
        submitted_at=r.get("submitted_at"),
        reviewed_at=r.get("reviewed_at"),
        reviewed_by_id=r.get("reviewed_by_id"),
        review_comments=r.get("review_comments"),
        created_at=r.get("created_at"),
    )


def _filters(user_id: Optional[int], status: Optional[VacationStatus]) -> tuple[str, list[object]]:
    clauses = ["1=1"]
    params: list[object] = []
    if user_id is not None:
        clauses.append("v.user_id=%s")
        params.append(int(user_id))
    if status is not None:
        clauses.append("v.status=%s")
        params.append(status.value)
    return " AND ".join(clauses), params


class MySQLVacationRepository(VacationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        user_id: int,
        request_type: RequestType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
        submitted_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO vacation_requests(
                    user_id, request_type, start_date, end_date, days_requested, status, reason, submitted_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(user_id),
                    request_type.value,
                    start_date,
                    end_date,
                    int(days_requested),
                    VacationStatus.PENDING.value,
                    reason,
                    submitted_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[VacationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REQUEST_COLUMNS} FROM vacation_requests v WHERE v.request_id=%s",
                (int(request_id),),
            )
            row = fetchone(cur)
            return _request_from_row(row) if row else None

    def find_overlapping(
        self,
        user_id: int,
        start_date: date,
        end_date: date,
        *,
        exclude_request_id: Optional[int] = None,
    ) -> Optional[VacationRequest]:
        clauses = [
            "v.user_id=%s",
            f"v.status IN ({in_clause(BLOCKING_STATUSES)})",
            "v.start_date<=%s",
            "v.end_date>=%s",
        ]
        params: list[object] = [
            int(user_id),
            *[s.value for s in BLOCKING_STATUSES],
            end_date,
            start_date,
        ]
        if exclude_request_id is not None:
            clauses.append("v.request_id<>%s")
            params.append(int(exclude_request_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM vacation_requests v
                WHERE {" AND ".join(clauses)}
                ORDER BY v.start_date
                LIMIT 1
                """,
                tuple(params),
            )
            row = fetchone(cur)
            return _request_from_row(row) if row else None

    def list_requests(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[VacationStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[VacationRequest]:
        where, params = _filters(user_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM vacation_requests v
                WHERE {where}
                ORDER BY v.submitted_at DESC, v.request_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return [_request_from_row(r) for r in fetchall(cur)]

    def count_requests(self, *, user_id: Optional[int] = None, status: Optional[VacationStatus] = None) -> int:
        where, params = _filters(user_id, status)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM vacation_requests v WHERE {where}", tuple(params))
            row = fetchone(cur)
            return as_int(row["n"] if row else None)

    def list_pending(self, *, exclude_user_id: Optional[int] = None, limit: int = 10) -> Sequence[VacationRequest]:
        params: list[object] = [VacationStatus.PENDING.value]
        extra = ""
        if exclude_user_id is not None:
            extra = " AND v.user_id<>%s"
            params.append(int(exclude_user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM vacation_requests v
                WHERE v.status=%s{extra}
                ORDER BY v.submitted_at DESC, v.request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_request_from_row(r) for r in fetchall(cur)]

    def count_pending(self, *, exclude_user_id: Optional[int] = None) -> int:
        params: list[object] = [VacationStatus.PENDING.value]
        extra = ""
        if exclude_user_id is not None:
            extra = " AND user_id<>%s"
            params.append(int(exclude_user_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM vacation_requests WHERE status=%s{extra}", tuple(params))
            row = fetchone(cur)
            return as_int(row["n"] if row else None)

    def update_pending(
        self,
        request_id: int,
        *,
        request_type: RequestType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE vacation_requests
                SET request_type=%s, start_date=%s, end_date=%s, days_requested=%s, reason=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    request_type.value,
                    start_date,
                    end_date,
                    int(days_requested),
                    reason,
                    int(request_id),
                    VacationStatus.PENDING.value,
                ),
            )
            if cur.rowcount > 0:
                return True
            # Unchanged values report 0 rows; fall back to a status check.
            cur.execute(
                "SELECT 1 AS found FROM vacation_requests WHERE request_id=%s AND status=%s",
                (int(request_id), VacationStatus.PENDING.value),
            )
            return fetchone(cur) is not None

    def approve(
        self,
        request_id: int,
        *,
        reviewer_id: int,
        reviewed_at: datetime,
        comments: Optional[str],
        debit: Optional[BalanceDebit] = None,
    ) -> ApprovalOutcome:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE vacation_requests
                    SET status=%s, reviewed_by_id=%s, reviewed_at=%s, review_comments=%s
                    WHERE request_id=%s AND status=%s
                    """,
                    (
                        VacationStatus.APPROVED.value,
                        int(reviewer_id),
                        reviewed_at,
                        comments,
                        int(request_id),
                        VacationStatus.PENDING.value,
                    ),
                )
                if cur.rowcount == 0:
                    return ApprovalOutcome.STALE

                if debit is not None and debit.days > 0:
                    cur.execute(
                        """
                        UPDATE profiles
                        SET vacation_balance=vacation_balance-%s, used_days=used_days+%s
                        WHERE user_id=%s AND vacation_balance>=%s
                        """,
                        (int(debit.days), int(debit.days), int(debit.user_id), int(debit.days)),
                    )
                    if cur.rowcount == 0:
                        raise _Rollback()
                return ApprovalOutcome.APPROVED
        except _Rollback:
            return ApprovalOutcome.INSUFFICIENT_BALANCE

    def reject(self, request_id: int, *, reviewer_id: int, reviewed_at: datetime, comments: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE vacation_requests
                SET status=%s, reviewed_by_id=%s, reviewed_at=%s, review_comments=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    VacationStatus.REJECTED.value,
                    int(reviewer_id),
                    reviewed_at,
                    comments,
                    int(request_id),
                    VacationStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete_pending(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM vacation_requests WHERE request_id=%s AND status=%s",
                (int(request_id), VacationStatus.PENDING.value),
            )
            return cur.rowcount > 0

    def summarize_for_user(self, user_id: int, *, since: datetime) -> Mapping[VacationStatus, VacationSummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT status, COUNT(*) AS n, SUM(days_requested) AS days
                FROM vacation_requests
                WHERE user_id=%s AND created_at>=%s
                GROUP BY status
                """,
                (int(user_id), since),
            )
            return {
                VacationStatus(r["status"]): VacationSummary(count=as_int(r["n"]), total_days=as_int(r["days"]))
                for r in fetchall(cur)
            }

    def list_recent_for_user(self, user_id: int, *, since: datetime, limit: int) -> Sequence[VacationRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_REQUEST_COLUMNS}
                FROM vacation_requests v
                WHERE v.user_id=%s AND v.created_at>=%s
                ORDER BY v.created_at DESC, v.request_id DESC
                LIMIT %s
                """,
                (int(user_id), since, int(limit)),
            )
            return [_request_from_row(r) for r in fetchall(cur)]

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM vacation_requests")
            row = fetchone(cur)
            return as_int(row["n"] if row else None)
