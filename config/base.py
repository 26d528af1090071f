"""Values shared by every settings module; each can be overridden by an env var of the same name."""
import os


def env_flag(name: str, default: str) -> bool:
    return bool(int(os.getenv(name, default)))


def db_config(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "worktime_db"),
    }


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Sharing codes: every active code is replaced on this period.
CODE_ROTATION_INTERVAL_SECONDS = int(os.getenv("CODE_ROTATION_INTERVAL_SECONDS", "300"))
