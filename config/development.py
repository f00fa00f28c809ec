import os

from config import env_flag, smtp_config_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timetracker_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "1")
# Optional: also create the demo accounts on startup
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

# Off by default: notifications are rendered and logged instead of sent.
EMAIL_ENABLED = env_flag("EMAIL_ENABLED", "0")
SMTP_CONFIG = smtp_config_from_env()
NOTIFY_WORKERS = int(os.getenv("NOTIFY_WORKERS", "2"))
