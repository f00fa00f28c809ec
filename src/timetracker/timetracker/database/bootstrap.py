"""Schema and demo-data setup, used by main.create_app and scripts/."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import mysql.connector
from werkzeug.security import generate_password_hash

from ..core.enums import Province, Role
from ..users.model import Preferences
from .connection import DBConfig

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("users", "profiles", "timesheets", "timesheet_entries", "vacation_requests")


@dataclass(frozen=True)
class DemoUser:
    email: str
    password: str
    role: Role
    full_name: str
    province: Province
    vacation_balance: int
    email_notifications: bool = True


DEMO_USERS = (
    DemoUser("admin@timetracker.local", "admin123", Role.ADMIN, "System Administrator", Province.ONTARIO, 25),
    DemoUser("manager@timetracker.local", "manager123", Role.MANAGER, "Jane Smith", Province.ONTARIO, 18),
    DemoUser("john.doe@timetracker.local", "employee123", Role.EMPLOYEE, "John Doe", Province.ONTARIO, 10),
    DemoUser(
        "mike.johnson@timetracker.local",
        "employee123",
        Role.EMPLOYEE,
        "Mike Johnson",
        Province.BRITISH_COLUMBIA,
        15,
        email_notifications=False,
    ),
)


def _connect(db_config: dict, *, with_database: bool = True):
    cfg = DBConfig.from_dict(db_config)
    kwargs = dict(host=cfg.host, port=cfg.port, user=cfg.user, password=cfg.password, use_pure=True)
    if with_database:
        kwargs["database"] = cfg.database
    return mysql.connector.connect(**kwargs)


def _strip_create_db_and_use(sql: str) -> str:
    # schema.sql names a database; the configured one wins.
    sql = re.sub(r"(?im)^\s*CREATE\s+DATABASE\b.*?;\s*$", "", sql)
    sql = re.sub(r"(?im)^\s*USE\b.*?;\s*$", "", sql)
    return sql


def _iter_sql_statements(sql: str) -> Iterable[str]:
    """Split a script on ';' outside quotes."""

    buf: list[str] = []
    quote = ""
    escape = False

    for ch in sql:
        buf.append(ch)
        if escape:
            escape = False
        elif ch == "\\":
            escape = True
        elif quote:
            if ch == quote:
                quote = ""
        elif ch in ("'", '"'):
            quote = ch
        elif ch == ";":
            stmt = "".join(buf[:-1]).strip()
            buf.clear()
            if stmt:
                yield stmt

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: dict) -> None:
    database = DBConfig.from_dict(db_config).database
    conn = _connect(db_config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(f"CREATE DATABASE IF NOT EXISTS `{database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci")
        conn.commit()
    finally:
        conn.close()


def apply_schema(db_config: dict, *, schema_path: str | Path) -> None:
    ensure_database_exists(db_config)
    sql = _strip_create_db_and_use(Path(schema_path).read_text(encoding="utf-8"))

    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        for stmt in _iter_sql_statements(sql):
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


def ensure_demo_users(db_config: dict, users: Iterable[DemoUser] = DEMO_USERS) -> int:
    """Insert or refresh the demo accounts. Returns how many were created."""

    created = 0
    conn = _connect(db_config)
    try:
        cur = conn.cursor(dictionary=True)
        for demo in users:
            password_hash = generate_password_hash(demo.password)
            prefs = json.dumps(Preferences(email_notifications=demo.email_notifications).to_dict())

            cur.execute("SELECT user_id FROM users WHERE email=%s", (demo.email,))
            existing = cur.fetchone()
            if existing:
                user_id = int(existing["user_id"])
                cur.execute(
                    "UPDATE users SET password_hash=%s, role=%s WHERE user_id=%s",
                    (password_hash, demo.role.value, user_id),
                )
            else:
                cur.execute(
                    "INSERT INTO users(email, password_hash, role) VALUES(%s,%s,%s)",
                    (demo.email, password_hash, demo.role.value),
                )
                user_id = int(cur.lastrowid)
                created += 1

            cur.execute(
                """
                INSERT INTO profiles(user_id, full_name, province, vacation_balance, accrued_days, used_days, preferences)
                VALUES(%s,%s,%s,%s,%s,0,%s)
                ON DUPLICATE KEY UPDATE full_name=VALUES(full_name), province=VALUES(province)
                """,
                (user_id, demo.full_name, demo.province.value, demo.vacation_balance, demo.vacation_balance, prefs),
            )
        conn.commit()
    finally:
        conn.close()

    logger.info("Demo users ready (created=%s)", created)
    return created


def list_tables(db_config: dict) -> list[str]:
    conn = _connect(db_config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()


def missing_tables(db_config: dict) -> list[str]:
    """Required tables absent from the configured database."""

    present = set(list_tables(db_config))
    return [t for t in REQUIRED_TABLES if t not in present]
