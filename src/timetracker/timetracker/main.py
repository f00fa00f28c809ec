from __future__ import annotations

import atexit
import importlib
import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .common.http import register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_SESSION_DAYS
from .dashboard.controller import register as register_dashboard
from .database.bootstrap import apply_schema, ensure_demo_users, missing_tables
from .timesheets.controller import register as register_timesheets
from .users.controller import register as register_users
from .vacations.controller import register as register_vacations

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _register_health(app: Flask, container: Container) -> None:
    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        database = "unconfigured"
        if container.conn is not None:
            try:
                database = "ok" if container.conn.ping() else "down"
            except Exception:
                logger.exception("Database health check failed")
                database = "down"

        email = "ok" if container.email_sender.verify() else "down"
        healthy = database in ("ok", "unconfigured") and email == "ok"
        return jsonify({"status": "ok" if healthy else "degraded", "database": database, "email": email}), (
            200 if healthy else 503
        )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            missing = missing_tables(db_config)
            if missing:
                logger.warning("Schema applied but tables are missing: %s", ", ".join(missing))
            else:
                logger.info("Schema ready")
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            ensure_demo_users(db_config)

        container = build_container(
            db_config=db_config,
            smtp_config=getattr(settings, "SMTP_CONFIG", None),
            email_enabled=bool(getattr(settings, "EMAIL_ENABLED", False)),
            notify_workers=int(getattr(settings, "NOTIFY_WORKERS", 2)),
        )
        atexit.register(container.dispatcher.shutdown)

    app.extensions["timetracker"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_timesheets(app, container)
    register_vacations(app, container)
    register_dashboard(app, container)
    _register_health(app, container)

    return app
