from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import time, timedelta
from typing import Any, Dict, List, Optional

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor) inside one transaction.

    Commits when the block exits normally, rolls back on any exception.
    """

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values) -> str:
    """Placeholder list for an IN (...) clause."""
    return ",".join(["%s"] * len(values))


def as_float(value: Any, default: float = 0.0) -> float:
    """DECIMAL/SUM columns arrive as Decimal or None."""
    if value is None:
        return default
    return float(value)


def as_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    return int(value)


def load_json(value: Any) -> dict:
    if value is None or value == "":
        return {}
    if isinstance(value, dict):
        return value
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    return json.loads(value)


def normalize_mysql_time(value: Any) -> Optional[time]:
    """Normalize MySQL TIME values across connector implementations.

    mysql-connector can return TIME as:
    - datetime.time
    - datetime.timedelta
    - string (e.g. '08:30:00')
    """

    if value is None:
        return None

    if isinstance(value, time):
        return value

    if isinstance(value, timedelta):
        total_seconds = int(value.total_seconds()) % 86400
        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        seconds = total_seconds % 60
        return time(hour=hours, minute=minutes, second=seconds)

    if isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) < 2:
            raise ValueError(f"Invalid time string: {value!r}")
        hours = int(parts[0])
        minutes = int(parts[1])
        seconds = int(parts[2]) if len(parts) >= 3 and parts[2] else 0
        return time(hour=hours, minute=minutes, second=seconds)

    raise TypeError(f"Unsupported MySQL TIME value type: {type(value)!r}")
