"""Timestamp helpers shared by share links and OAuth credentials."""

from datetime import datetime, timedelta, timezone


def now_utc() -> datetime:
    """Timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on read)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    """Return True if expires_at is at or before now."""
    return as_utc(expires_at) <= as_utc(now or now_utc())


def expires_at_from(seconds: int | float, now: datetime | None = None) -> datetime:
    """Absolute expiry for a provider's relative ``expires_in``."""
    return as_utc(now or now_utc()) + timedelta(seconds=seconds)
