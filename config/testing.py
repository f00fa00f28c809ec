import os

from config import smtp_config_from_env

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timetracker_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = False
AUTO_SEED_DB = False

EMAIL_ENABLED = False
SMTP_CONFIG = smtp_config_from_env()
NOTIFY_WORKERS = 1
