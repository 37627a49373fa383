"""Rate limiting configuration."""

import os

from slowapi import Limiter
from slowapi.util import get_remote_address

from growthtrack.core.config import settings

IS_TESTING = os.getenv("TESTING", "").lower() in ("1", "true", "yes")
DEFAULT_LIMITS = (
    []
    if IS_TESTING or settings.RATE_LIMIT_API <= 0
    else [f"{settings.RATE_LIMIT_API}/minute"]
)

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("RATE_LIMIT_STORAGE_URI", "memory://"),
    default_limits=DEFAULT_LIMITS,
    enabled=not IS_TESTING,
)


def shared_access_limit() -> str:
    """Per-IP limit on share verification (slows code guessing)."""
    return f"{max(settings.RATE_LIMIT_SHARED, 1)}/minute"
