"""Runtime configuration, read from the environment (and an optional .env file)."""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


DATABASE_URL = os.getenv("ADMISSION_DATABASE_URL", "sqlite:///./admission_test.db")

# Signs the admin session cookie; override in every real deployment
SECRET_KEY = os.getenv("ADMISSION_SECRET_KEY", "CHANGE_ME_TO_A_RANDOM_SECRET")

# Budget applied to candidate verification and attempt creation per client
RATE_LIMIT_REQUESTS = _env_int("ADMISSION_RATE_LIMIT_REQUESTS", 5)
RATE_LIMIT_WINDOW_SECONDS = _env_int("ADMISSION_RATE_LIMIT_WINDOW_SECONDS", 60)

# Only honour X-Forwarded-For when a reverse proxy we control sets it
TRUST_PROXY_HEADERS = _env_bool("ADMISSION_TRUST_PROXY_HEADERS", False)

LOG_LEVEL = os.getenv("ADMISSION_LOG_LEVEL", "INFO").upper()

SEED_DEMO_DATA = _env_bool("ADMISSION_SEED_DEMO_DATA", True)
DEFAULT_ADMIN_EMAIL = os.getenv("ADMISSION_ADMIN_EMAIL", "admin@example.com")
DEFAULT_ADMIN_PASSWORD = os.getenv("ADMISSION_ADMIN_PASSWORD", "admin123")
