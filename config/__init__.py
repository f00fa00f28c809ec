import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


def smtp_config_from_env() -> dict:
    return {
        "host": os.getenv("SMTP_HOST", "localhost"),
        "port": int(os.getenv("SMTP_PORT", "587")),
        "user": os.getenv("SMTP_USER") or None,
        "password": os.getenv("SMTP_PASS") or None,
        "use_tls": env_flag("SMTP_TLS", "1"),
        "use_ssl": env_flag("SMTP_SECURE", "0"),
        "from_address": os.getenv("SMTP_FROM", "noreply@timetracker.com"),
    }


def get_settings_module() -> str:
    # APP_ENV picks the settings module; development is the default.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"
