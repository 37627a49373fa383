"""Security utilities for bearer session tokens, OAuth state and share secrets."""

import secrets
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from growthtrack.core.config import settings


# =============================================================================
# Session Token (bearer JWT)
# =============================================================================

def create_session_token(user_id: UUID, expires_hours: int | None = None) -> str:
    """
    Create signed session JWT.

    Always signs with current secret (JWT_SECRET).
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + timedelta(hours=expires_hours or settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def decode_session_token(token: str) -> dict:
    """
    Decode and verify session JWT.

    Tries current secret first, then previous (for rotation support).

    Raises:
        jwt.InvalidTokenError: If token invalid with all secrets
    """
    last_error = None
    for secret in settings.jwt_secrets:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=["HS256"],
                audience=settings.JWT_AUDIENCE,
            )
        except jwt.InvalidTokenError as e:
            last_error = e
            continue
    raise last_error  # type: ignore


# =============================================================================
# Calendar OAuth State
# =============================================================================

def create_calendar_state(user_id: UUID) -> str:
    """
    Create a signed, short-lived OAuth state naming the user.

    Carries a random nonce so two consent screens never share a state.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "purpose": "calendar_oauth",
        "nonce": secrets.token_urlsafe(16),
        "iat": now,
        "exp": now + timedelta(seconds=settings.CALENDAR_STATE_MAX_AGE),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def verify_calendar_state(state: str, user_id: UUID) -> tuple[bool, str]:
    """
    Verify an OAuth callback state was issued for this user.

    Returns:
        (success, error_message)
    """
    try:
        payload = jwt.decode(state, settings.JWT_SECRET, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        return False, "State expired"
    except jwt.InvalidTokenError:
        return False, "Invalid state"

    if payload.get("purpose") != "calendar_oauth":
        return False, "Invalid state"
    if payload.get("sub") != str(user_id):
        return False, "State was issued for a different user"
    return True, ""


# =============================================================================
# Share Link Secrets
# =============================================================================

# No 0/O or 1/I so codes survive being read aloud or copied by hand.
ACCESS_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ACCESS_CODE_LENGTH = 6


def generate_share_token() -> str:
    """Generate an unguessable share token (32 bytes, URL-safe base64)."""
    return secrets.token_urlsafe(32)


def generate_access_code() -> str:
    """Generate a short human-enterable access code."""
    return "".join(
        secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(ACCESS_CODE_LENGTH)
    )


def normalize_access_code(code: str) -> str:
    """Access codes are case-insensitive; compare in uppercase."""
    return (code or "").strip().upper()
