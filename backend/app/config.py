"""
Service configuration.
Values are read once at import time from the environment (and a .env file).
"""

import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(
    name: str,
    default: int,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    """Integer from the environment, clamped to [minimum, maximum] when given."""
    value = os.getenv(name, "").strip()
    if not value:
        number = default
    else:
        try:
            number = int(value)
        except ValueError:
            raise ValueError(f"{name} must be an integer, got {value!r}")
    if minimum is not None:
        number = max(number, minimum)
    if maximum is not None:
        number = min(number, maximum)
    return number


SERVICE_NAME = "Decrypt Service"
SERVICE_VERSION = "1.0.0"

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# Request body limit (50mb)
MAX_BODY_BYTES: int = _env_int("MAX_BODY_BYTES", 50 * 1024 * 1024)

# Offset reported when the parser gives no position of its own.
# 6801 is where the upstream producer's payloads historically broke.
DIAGNOSTIC_OFFSET: int = _env_int("DIAGNOSTIC_OFFSET", 6801)

# Characters on each side of the offset in the error response sample (100-200)
SAMPLE_RADIUS: int = _env_int("SAMPLE_RADIUS", 100, minimum=100, maximum=200)

BACKTICK_PARAGRAPH_RULE: bool = _env_bool("BACKTICK_PARAGRAPH_RULE", True)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Reads CORS_ORIGINS as a comma-separated list, e.g.:
        CORS_ORIGINS=https://crm.example.com,https://ops.example.com

    When unset every origin is allowed ("*"), matching the permissive
    default the service has always shipped with. Duplicates are removed
    while preserving order.
    """
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if not cors_env:
        return ["*"]

    seen: set = set()
    origins: List[str] = []
    for origin in (o.strip() for o in cors_env.split(",")):
        if origin and origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins or ["*"]
