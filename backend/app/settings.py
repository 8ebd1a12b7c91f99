"""
Runtime configuration read from the environment.

Values are loaded from a local .env file once at import time and then read
through accessor functions, so a value changed in the environment is picked up
on the next call.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PORT = 4000
DEFAULT_PHONE_NUMBER_PATTERN = r"^\+251[0-9]{9}$"
DEFAULT_PHONE_NUMBER_EXAMPLE = "+251XXXXXXXXX"
DEFAULT_PREFLIGHT_TIMEOUT_SECONDS = 5.0

_TRUTHY = ("true", "1", "yes")


def get_environment() -> str:
    """Name of the running environment (development, test, production, ...)"""
    return os.getenv("APP_ENV", "development").strip().lower() or "development"


def is_production() -> bool:
    return get_environment() == "production"


def get_database_url() -> Optional[str]:
    url = os.getenv("DATABASE_URL", "").strip()
    return url or None


def sql_echo_enabled() -> bool:
    return os.getenv("SQL_ECHO", "false").lower() in _TRUTHY


def get_host() -> str:
    return os.getenv("HOST", "0.0.0.0")


def get_port() -> int:
    try:
        return int(os.getenv("PORT", str(DEFAULT_PORT)))
    except ValueError:
        return DEFAULT_PORT


def get_cors_origins() -> List[str]:
    origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    extra = os.getenv("CORS_ORIGINS", "")
    if extra:
        origins.extend(o.strip() for o in extra.split(",") if o.strip())
    return origins


def get_webhook_secret() -> Optional[str]:
    secret = os.getenv("CLERK_WEBHOOK_SECRET", "").strip()
    return secret or None


def get_phone_number_pattern() -> str:
    return os.getenv("PHONE_NUMBER_PATTERN", DEFAULT_PHONE_NUMBER_PATTERN)


def get_phone_number_example() -> str:
    return os.getenv("PHONE_NUMBER_EXAMPLE", DEFAULT_PHONE_NUMBER_EXAMPLE)


def get_preflight_timeout() -> float:
    try:
        return float(os.getenv("PREFLIGHT_TIMEOUT_SECONDS", str(DEFAULT_PREFLIGHT_TIMEOUT_SECONDS)))
    except ValueError:
        return DEFAULT_PREFLIGHT_TIMEOUT_SECONDS


def get_log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO")
