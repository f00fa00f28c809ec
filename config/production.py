import os

from config import env_flag, smtp_config_from_env

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "timetracker_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")
AUTO_SEED_DB = env_flag("AUTO_SEED_DB", "0")

EMAIL_ENABLED = env_flag("EMAIL_ENABLED", "1")
SMTP_CONFIG = smtp_config_from_env()
NOTIFY_WORKERS = int(os.getenv("NOTIFY_WORKERS", "4"))
