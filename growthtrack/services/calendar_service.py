"""Calendar service - Google Calendar integration for parents.

Handles:
- OAuth authorization-code exchange and credential upsert
- Transparent access-token refresh
- Event/calendar passthrough calls gated on a valid token

Every call takes the DB session and the outbound httpx client explicitly.
No retries: upstream failures surface to the caller as UpstreamFailure.
Concurrent refreshes for the same user are not serialized; the last
successful write wins.

Note: Requires calendar and calendar.events scopes.
"""

import logging
from datetime import datetime, timedelta
from typing import Any
from urllib.parse import quote, urlencode
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from growthtrack.core.config import settings
from growthtrack.core.encryption import decrypt_token, encrypt_token
from growthtrack.core.errors import NotConnectedError, UpstreamFailure
from growthtrack.core.structured_logging import build_log_context
from growthtrack.db.models import CalendarCredential
from growthtrack.utils.expiry import as_utc, expires_at_from, is_expired, now_utc

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
]
DEFAULT_EXPIRES_IN = 3600
DEFAULT_EVENT_WINDOW_DAYS = 30


# =============================================================================
# Authorization URL
# =============================================================================

def get_auth_url(redirect_uri: str, state: str) -> str:
    """
    Generate the Google consent URL.

    Always asks for offline access with a forced consent screen so Google
    issues a refresh token on every exchange.
    """
    params = {
        "client_id": settings.GOOGLE_CALENDAR_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": " ".join(CALENDAR_SCOPES),
        "access_type": "offline",
        "prompt": "consent",
        "state": state,
    }
    return f"{settings.GOOGLE_OAUTH_AUTH_URL}?{urlencode(params)}"


# =============================================================================
# Credential CRUD
# =============================================================================

def get_credential(db: Session, user_id: UUID) -> CalendarCredential | None:
    return (
        db.query(CalendarCredential)
        .filter(CalendarCredential.user_id == user_id)
        .first()
    )


def save_credential(
    db: Session,
    user_id: UUID,
    access_token: str,
    refresh_token: str | None = None,
    expires_in: int | None = None,
    *,
    now: datetime | None = None,
) -> CalendarCredential:
    """
    Insert or update the user's credential.

    A missing refresh_token keeps whatever was stored before.
    """
    credential = get_credential(db, user_id)
    expires_at = expires_at_from(expires_in or DEFAULT_EXPIRES_IN, now)

    if credential:
        credential.access_token_encrypted = encrypt_token(access_token)
        if refresh_token:
            credential.refresh_token_encrypted = encrypt_token(refresh_token)
        credential.expires_at = expires_at
        credential.updated_at = as_utc(now or now_utc())
    else:
        credential = CalendarCredential(
            user_id=user_id,
            access_token_encrypted=encrypt_token(access_token),
            refresh_token_encrypted=encrypt_token(refresh_token)
            if refresh_token
            else None,
            expires_at=expires_at,
        )
        db.add(credential)

    db.commit()
    db.refresh(credential)
    return credential


def disconnect(db: Session, user_id: UUID) -> bool:
    """Delete the user's credential. Returns False when there was none."""
    credential = get_credential(db, user_id)
    if not credential:
        return False
    db.delete(credential)
    db.commit()
    logger.info("calendar_disconnected", extra=build_log_context(user_id=user_id))
    return True


# =============================================================================
# Token Endpoint
# =============================================================================

def _decrypt_stored(credential: CalendarCredential, encrypted: str) -> str | None:
    """
    Decrypt a stored token, or None when no configured key can read it.

    The row is kept; the user reads as not connected until they reconnect.
    """
    try:
        return decrypt_token(encrypted)
    except ValueError:
        logger.error(
            "calendar_token_undecryptable",
            extra=build_log_context(user_id=credential.user_id),
        )
        return None


async def _post_token_endpoint(
    client: httpx.AsyncClient, data: dict[str, str]
) -> dict[str, Any]:
    """
    POST form-encoded grant parameters to the token endpoint.

    Raises:
        UpstreamFailure: transport error, non-2xx, non-JSON, or an ``error`` body
    """
    payload = {
        "client_id": settings.GOOGLE_CALENDAR_CLIENT_ID,
        "client_secret": settings.GOOGLE_CALENDAR_CLIENT_SECRET,
        **data,
    }
    try:
        response = await client.post(settings.GOOGLE_OAUTH_TOKEN_URL, data=payload)
    except httpx.HTTPError as exc:
        raise UpstreamFailure(0, "", f"Token endpoint unreachable: {exc}") from exc

    try:
        body = response.json()
    except ValueError:
        raise UpstreamFailure(
            response.status_code, response.text, "Token endpoint returned a non-JSON body"
        )

    if not isinstance(body, dict):
        raise UpstreamFailure(response.status_code, response.text, "Unexpected token response")

    if body.get("error") or response.status_code >= 400:
        message = body.get("error_description") or body.get("error") or "Token request failed"
        raise UpstreamFailure(response.status_code, response.text, message)

    if not body.get("access_token"):
        raise UpstreamFailure(response.status_code, response.text, "Token response missing access_token")

    return body


async def exchange_authorization_code(
    db: Session,
    user_id: UUID,
    code: str,
    redirect_uri: str,
    *,
    client: httpx.AsyncClient,
    now: datetime | None = None,
) -> CalendarCredential:
    """
    Exchange an authorization code and upsert the user's credential.

    Raises:
        UpstreamFailure: provider rejected the code; nothing is written
    """
    tokens = await _post_token_endpoint(
        client,
        {
            "code": code,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
        },
    )

    if not tokens.get("refresh_token") and get_credential(db, user_id) is None:
        logger.warning(
            "calendar_exchange_without_refresh_token",
            extra=build_log_context(user_id=user_id),
        )

    credential = save_credential(
        db,
        user_id,
        access_token=tokens["access_token"],
        refresh_token=tokens.get("refresh_token"),
        expires_in=tokens.get("expires_in"),
        now=now,
    )
    logger.info("calendar_connected", extra=build_log_context(user_id=user_id))
    return credential


async def refresh_access_token(
    db: Session,
    credential: CalendarCredential,
    *,
    client: httpx.AsyncClient,
    now: datetime | None = None,
) -> str | None:
    """
    Mint a new access token from the stored refresh token.

    On failure the stored credential is left untouched and None is returned.
    """
    if not credential.refresh_token_encrypted:
        return None

    refresh_token = _decrypt_stored(credential, credential.refresh_token_encrypted)
    if refresh_token is None:
        return None

    try:
        tokens = await _post_token_endpoint(
            client,
            {
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            },
        )
    except UpstreamFailure as exc:
        logger.error(
            "Calendar token refresh failed: %s",
            exc.message,
            extra=build_log_context(
                user_id=credential.user_id, upstream_status=exc.status
            ),
        )
        return None

    credential.access_token_encrypted = encrypt_token(tokens["access_token"])
    credential.expires_at = expires_at_from(
        tokens.get("expires_in") or DEFAULT_EXPIRES_IN, now
    )
    # Google keeps refresh tokens stable; store a rotated one when issued.
    if tokens.get("refresh_token"):
        credential.refresh_token_encrypted = encrypt_token(tokens["refresh_token"])
    credential.updated_at = as_utc(now or now_utc())
    db.commit()

    logger.info("calendar_token_refreshed", extra=build_log_context(user_id=credential.user_id))
    return tokens["access_token"]


async def get_valid_access_token(
    db: Session,
    user_id: UUID,
    *,
    client: httpx.AsyncClient,
    now: datetime | None = None,
) -> str | None:
    """
    Get a valid Google access token for a user.

    Returns the stored token while it is unexpired (no network call),
    refreshes once it is not, and returns None when the user is not
    connected, the stored token cannot be decrypted, or the refresh failed.
    """
    credential = get_credential(db, user_id)
    if not credential:
        return None

    if not is_expired(credential.expires_at, now):
        return _decrypt_stored(credential, credential.access_token_encrypted)

    return await refresh_access_token(db, credential, client=client, now=now)


# =============================================================================
# Calendar API Passthrough
# =============================================================================

async def _require_token(
    db: Session, user_id: UUID, client: httpx.AsyncClient, now: datetime | None
) -> str:
    token = await get_valid_access_token(db, user_id, client=client, now=now)
    if not token:
        raise NotConnectedError("Not connected to Google Calendar")
    return token


async def _calendar_request(
    client: httpx.AsyncClient,
    method: str,
    path: str,
    access_token: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send a bearer-authenticated Calendar API request; non-2xx raises."""
    url = f"{settings.GOOGLE_CALENDAR_API_URL.rstrip('/')}{path}"
    try:
        response = await client.request(
            method,
            url,
            headers={"Authorization": f"Bearer {access_token}"},
            **kwargs,
        )
    except httpx.HTTPError as exc:
        raise UpstreamFailure(0, "", f"Calendar API unreachable: {exc}") from exc

    if response.status_code >= 400:
        logger.warning(
            "calendar_api_error",
            extra=build_log_context(route=f"{method} {path}", upstream_status=response.status_code),
        )
        raise UpstreamFailure(
            response.status_code, response.text, "Calendar API request failed"
        )
    return response


def _calendar_path(calendar_id: str) -> str:
    return f"/calendars/{quote(calendar_id or 'primary', safe='')}/events"


async def list_calendars(
    db: Session,
    user_id: UUID,
    *,
    client: httpx.AsyncClient,
    now: datetime | None = None,
) -> dict[str, Any]:
    token = await _require_token(db, user_id, client, now)
    response = await _calendar_request(client, "GET", "/users/me/calendarList", token)
    return response.json()


async def list_events(
    db: Session,
    user_id: UUID,
    *,
    client: httpx.AsyncClient,
    calendar_id: str = "primary",
    time_min: datetime | None = None,
    time_max: datetime | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    List events in a time window (default: now .. now + 30 days).

    Recurring events are expanded into single instances.
    """
    token = await _require_token(db, user_id, client, now)
    start = as_utc(time_min) if time_min else as_utc(now or now_utc())
    end = as_utc(time_max) if time_max else start + timedelta(days=DEFAULT_EVENT_WINDOW_DAYS)
    response = await _calendar_request(
        client,
        "GET",
        _calendar_path(calendar_id),
        token,
        params={
            "timeMin": start.isoformat(),
            "timeMax": end.isoformat(),
            "singleEvents": "true",
            "orderBy": "startTime",
        },
    )
    return response.json()


async def create_event(
    db: Session,
    user_id: UUID,
    event: dict[str, Any],
    *,
    client: httpx.AsyncClient,
    calendar_id: str = "primary",
    now: datetime | None = None,
) -> dict[str, Any]:
    token = await _require_token(db, user_id, client, now)
    response = await _calendar_request(
        client, "POST", _calendar_path(calendar_id), token, json=event
    )
    data = response.json()
    logger.info(
        "calendar_event_created",
        extra=build_log_context(user_id=user_id),
    )
    return data


async def delete_event(
    db: Session,
    user_id: UUID,
    event_id: str,
    *,
    client: httpx.AsyncClient,
    calendar_id: str = "primary",
    now: datetime | None = None,
) -> None:
    token = await _require_token(db, user_id, client, now)
    await _calendar_request(
        client,
        "DELETE",
        f"{_calendar_path(calendar_id)}/{quote(event_id, safe='')}",
        token,
    )
