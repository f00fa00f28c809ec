from __future__ import annotations

from datetime import date, datetime
from typing import Dict, List, Mapping, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import TimesheetStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, as_int, db_cursor, fetchall, fetchone, in_clause, normalize_mysql_time
from .model import Timesheet, TimesheetEntry, TimesheetSummary
from .repository import TimesheetRepository

_TIMESHEET_COLUMNS = """
    t.timesheet_id, t.user_id, t.week_starting, t.status, t.total_hours,
    t.submitted_at, t.approved_at, t.reviewed_at, t.approved_by_id,
    t.rejection_reason, t.created_at
"""


def _entry_from_row(r: dict) -> TimesheetEntry:
    return TimesheetEntry(
        entry_id=int(r["entry_id"]),
        work_date=r["work_date"],
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        break_minutes=as_int(r.get("break_minutes")),
        hours_worked=as_float(r.get("hours_worked")),
        notes=r.get("notes"),
    )


def _timesheet_from_row(r: dict, entries: Sequence[TimesheetEntry] = ()) -> Timesheet:
    return Timesheet(
        timesheet_id=int(r["timesheet_id"]),
        user_id=int(r["user_id"]),
        week_starting=r["week_starting"],
        status=TimesheetStatus(r["status"]),
        total_hours=as_float(r.get("total_hours")),
        entries=tuple(entries),
        submitted_at=r.get("submitted_at"),
        approved_at=r.get("approved_at"),
        reviewed_at=r.get("reviewed_at"),
        approved_by_id=r.get("approved_by_id"),
        rejection_reason=r.get("rejection_reason"),
        created_at=r.get("created_at"),
    )


def _insert_entries(cur, timesheet_id: int, entries: Sequence[TimesheetEntry]) -> None:
    for e in entries:
        cur.execute(
            """
            INSERT INTO timesheet_entries(
                timesheet_id, work_date, start_time, end_time, break_minutes, hours_worked, notes
            )
            VALUES(%s,%s,%s,%s,%s,%s,%s)
            """,
            (
                int(timesheet_id),
                e.work_date,
                e.start_time,
                e.end_time,
                int(e.break_minutes),
                e.hours_worked,
                e.notes,
            ),
        )


class MySQLTimesheetRepository(TimesheetRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _load(self, cur, rows: List[dict]) -> List[Timesheet]:
        """Attach entries to timesheet rows with one extra query."""

        if not rows:
            return []
        ids = [int(r["timesheet_id"]) for r in rows]
        cur.execute(
            f"""
            SELECT entry_id, timesheet_id, work_date, start_time, end_time, break_minutes, hours_worked, notes
            FROM timesheet_entries
            WHERE timesheet_id IN ({in_clause(ids)})
            ORDER BY work_date
            """,
            tuple(ids),
        )
        by_sheet: Dict[int, List[TimesheetEntry]] = {}
        for e in fetchall(cur):
            by_sheet.setdefault(int(e["timesheet_id"]), []).append(_entry_from_row(e))
        return [_timesheet_from_row(r, by_sheet.get(int(r["timesheet_id"]), [])) for r in rows]

    def create(
        self,
        *,
        user_id: int,
        week_starting: date,
        entries: Sequence[TimesheetEntry],
        total_hours: float,
    ) -> Optional[int]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    "INSERT INTO timesheets(user_id, week_starting, status, total_hours) VALUES(%s,%s,%s,%s)",
                    (int(user_id), week_starting, TimesheetStatus.DRAFT.value, total_hours),
                )
                timesheet_id = int(cur.lastrowid)
                _insert_entries(cur, timesheet_id, entries)
                return timesheet_id
        except IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                return None
            raise

    def get(self, timesheet_id: int) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TIMESHEET_COLUMNS} FROM timesheets t WHERE t.timesheet_id=%s",
                (int(timesheet_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return self._load(cur, [row])[0]

    def get_for_week(self, user_id: int, week_starting: date) -> Optional[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_TIMESHEET_COLUMNS} FROM timesheets t WHERE t.user_id=%s AND t.week_starting=%s",
                (int(user_id), week_starting),
            )
            row = fetchone(cur)
            if not row:
                return None
            return self._load(cur, [row])[0]

    def list_for_user(
        self,
        user_id: int,
        *,
        status: Optional[TimesheetStatus] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[Timesheet]:
        clauses = ["t.user_id=%s"]
        params: list[object] = [int(user_id)]
        if status is not None:
            clauses.append("t.status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TIMESHEET_COLUMNS}
                FROM timesheets t
                WHERE {" AND ".join(clauses)}
                ORDER BY t.week_starting DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return self._load(cur, fetchall(cur))

    def count_for_user(self, user_id: int, *, status: Optional[TimesheetStatus] = None) -> int:
        clauses = ["user_id=%s"]
        params: list[object] = [int(user_id)]
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM timesheets WHERE {' AND '.join(clauses)}", tuple(params))
            row = fetchone(cur)
            return as_int(row["n"] if row else None)

    @staticmethod
    def _submitted_where(exclude_user_id: Optional[int]) -> tuple[str, list[object]]:
        clauses = ["t.status=%s"]
        params: list[object] = [TimesheetStatus.SUBMITTED.value]
        if exclude_user_id is not None:
            clauses.append("t.user_id<>%s")
            params.append(int(exclude_user_id))
        return " AND ".join(clauses), params

    def list_submitted(
        self,
        *,
        exclude_user_id: Optional[int] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Sequence[Timesheet]:
        where, params = self._submitted_where(exclude_user_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TIMESHEET_COLUMNS}
                FROM timesheets t
                WHERE {where}
                ORDER BY t.submitted_at DESC, t.timesheet_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), int(offset)]),
            )
            return self._load(cur, fetchall(cur))

    def count_submitted(self, *, exclude_user_id: Optional[int] = None) -> int:
        where, params = self._submitted_where(exclude_user_id)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS n FROM timesheets t WHERE {where}", tuple(params))
            row = fetchone(cur)
            return as_int(row["n"] if row else None)

    def replace_entries(
        self,
        timesheet_id: int,
        *,
        entries: Sequence[TimesheetEntry],
        total_hours: float,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock keeps a concurrent submit from interleaving with the swap.
            cur.execute(
                "SELECT status FROM timesheets WHERE timesheet_id=%s FOR UPDATE",
                (int(timesheet_id),),
            )
            row = fetchone(cur)
            if not row or row["status"] != TimesheetStatus.DRAFT.value:
                return False

            cur.execute("DELETE FROM timesheet_entries WHERE timesheet_id=%s", (int(timesheet_id),))
            _insert_entries(cur, int(timesheet_id), entries)
            cur.execute(
                "UPDATE timesheets SET total_hours=%s WHERE timesheet_id=%s",
                (total_hours, int(timesheet_id)),
            )
            return True

    def mark_submitted(self, timesheet_id: int, *, submitted_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheets
                SET status=%s, submitted_at=%s
                WHERE timesheet_id=%s AND status=%s
                """,
                (
                    TimesheetStatus.SUBMITTED.value,
                    submitted_at,
                    int(timesheet_id),
                    TimesheetStatus.DRAFT.value,
                ),
            )
            return cur.rowcount > 0

    def decide(
        self,
        timesheet_id: int,
        *,
        status: TimesheetStatus,
        reviewer_id: int,
        reviewed_at: datetime,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        approved_at = reviewed_at if status == TimesheetStatus.APPROVED else None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE timesheets
                SET status=%s, approved_by_id=%s, reviewed_at=%s, approved_at=%s, rejection_reason=%s
                WHERE timesheet_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewer_id),
                    reviewed_at,
                    approved_at,
                    rejection_reason,
                    int(timesheet_id),
                    TimesheetStatus.SUBMITTED.value,
                ),
            )
            return cur.rowcount > 0

    def delete(self, timesheet_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM timesheets WHERE timesheet_id=%s AND status<>%s",
                (int(timesheet_id), TimesheetStatus.APPROVED.value),
            )
            return cur.rowcount > 0

    def summarize_for_user(self, user_id: int, *, since: datetime) -> Mapping[TimesheetStatus, TimesheetSummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT status, COUNT(*) AS n, SUM(total_hours) AS hours
                FROM timesheets
                WHERE user_id=%s AND created_at>=%s
                GROUP BY status
                """,
                (int(user_id), since),
            )
            return {
                TimesheetStatus(r["status"]): TimesheetSummary(count=as_int(r["n"]), total_hours=as_float(r["hours"]))
                for r in fetchall(cur)
            }

    def list_recent_for_user(self, user_id: int, *, since: datetime, limit: int) -> Sequence[Timesheet]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TIMESHEET_COLUMNS}
                FROM timesheets t
                WHERE t.user_id=%s AND t.created_at>=%s
                ORDER BY t.created_at DESC, t.timesheet_id DESC
                LIMIT %s
                """,
                (int(user_id), since, int(limit)),
            )
            return self._load(cur, fetchall(cur))

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM timesheets")
            row = fetchone(cur)
            return as_int(row["n"] if row else None)
