"""Tests for Google Calendar token brokering (exchange, refresh, disconnect)."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs

import httpx
import pytest
from cryptography.fernet import Fernet

from growthtrack.core.encryption import decrypt_token
from growthtrack.core.errors import NotConnectedError, UpstreamFailure
from growthtrack.services import calendar_service
from growthtrack.utils.expiry import as_utc

T0 = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)
TOKEN_HOST = "oauth2.googleapis.com"


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


def _token_response(**body) -> httpx.Response:
    return httpx.Response(200, json=body)


@pytest.mark.asyncio
async def test_exchange_code_stores_encrypted_tokens(db, test_user, upstream):
    upstream.handler = lambda request: _token_response(
        access_token="access-1", refresh_token="refresh-1", expires_in=3600
    )

    async with upstream.client() as client:
        credential = await calendar_service.exchange_authorization_code(
            db, test_user.id, "auth-code", "https://app.test/cb", client=client, now=T0
        )

    assert credential.access_token_encrypted != "access-1"
    assert decrypt_token(credential.access_token_encrypted) == "access-1"
    assert decrypt_token(credential.refresh_token_encrypted) == "refresh-1"
    assert as_utc(credential.expires_at) == T0 + timedelta(seconds=3600)

    form = _form(upstream.requests[0])
    assert form["grant_type"] == "authorization_code"
    assert form["code"] == "auth-code"
    assert form["redirect_uri"] == "https://app.test/cb"
    assert form["client_id"] == "test-client-id"
    assert form["client_secret"] == "test-client-secret"


@pytest.mark.asyncio
async def test_exchange_code_defaults_expiry_to_an_hour(db, test_user, upstream):
    upstream.handler = lambda request: _token_response(
        access_token="access-1", refresh_token="refresh-1"
    )
    async with upstream.client() as client:
        credential = await calendar_service.exchange_authorization_code(
            db, test_user.id, "code", "https://app.test/cb", client=client, now=T0
        )
    assert as_utc(credential.expires_at) == T0 + timedelta(seconds=3600)


@pytest.mark.asyncio
async def test_reconnect_without_refresh_token_keeps_previous(db, test_user, upstream):
    calendar_service.save_credential(
        db, test_user.id, "old-access", "old-refresh", 3600, now=T0
    )
    upstream.handler = lambda request: _token_response(
        access_token="new-access", expires_in=1800
    )

    async with upstream.client() as client:
        credential = await calendar_service.exchange_authorization_code(
            db, test_user.id, "code", "https://app.test/cb", client=client, now=T0
        )

    assert decrypt_token(credential.access_token_encrypted) == "new-access"
    assert decrypt_token(credential.refresh_token_encrypted) == "old-refresh"


@pytest.mark.asyncio
async def test_exchange_code_rejected_writes_nothing(db, test_user, upstream):
    upstream.handler = lambda request: httpx.Response(
        400, json={"error": "invalid_grant", "error_description": "Bad code"}
    )

    async with upstream.client() as client:
        with pytest.raises(UpstreamFailure) as exc_info:
            await calendar_service.exchange_authorization_code(
                db, test_user.id, "bad", "https://app.test/cb", client=client, now=T0
            )

    assert exc_info.value.status == 400
    assert exc_info.value.message == "Bad code"
    assert calendar_service.get_credential(db, test_user.id) is None


@pytest.mark.asyncio
async def test_unexpired_token_is_returned_without_network(db, test_user, upstream):
    calendar_service.save_credential(db, test_user.id, "access-1", "refresh-1", 3600, now=T0)

    async with upstream.client() as client:
        token = await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=T0 + timedelta(minutes=30)
        )

    assert token == "access-1"
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_once(db, test_user, upstream):
    credential = calendar_service.save_credential(
        db, test_user.id, "access-1", "refresh-1", 3600, now=T0
    )
    old_expiry = as_utc(credential.expires_at)
    upstream.handler = lambda request: _token_response(access_token="access-2", expires_in=3600)

    later = T0 + timedelta(hours=2)
    async with upstream.client() as client:
        token = await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=later
        )

    assert token == "access-2"
    assert len(upstream.calls_to(TOKEN_HOST)) == 1
    form = _form(upstream.requests[0])
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "refresh-1"

    db.refresh(credential)
    assert as_utc(credential.expires_at) > old_expiry
    assert as_utc(credential.expires_at) == later + timedelta(seconds=3600)
    assert decrypt_token(credential.refresh_token_encrypted) == "refresh-1"


@pytest.mark.asyncio
async def test_refresh_persists_rotated_refresh_token(db, test_user, upstream):
    credential = calendar_service.save_credential(
        db, test_user.id, "access-1", "refresh-1", 60, now=T0
    )
    upstream.handler = lambda request: _token_response(
        access_token="access-2", refresh_token="refresh-2", expires_in=3600
    )

    async with upstream.client() as client:
        await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=T0 + timedelta(minutes=5)
        )

    db.refresh(credential)
    assert decrypt_token(credential.refresh_token_encrypted) == "refresh-2"


@pytest.mark.asyncio
async def test_failed_refresh_returns_none_and_keeps_credential(db, test_user, upstream):
    credential = calendar_service.save_credential(
        db, test_user.id, "access-1", "refresh-1", 3600, now=T0
    )
    stored_access = credential.access_token_encrypted
    stored_refresh = credential.refresh_token_encrypted
    stored_expiry = as_utc(credential.expires_at)
    upstream.handler = lambda request: httpx.Response(400, json={"error": "invalid_grant"})

    async with upstream.client() as client:
        token = await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=T0 + timedelta(hours=2)
        )

    assert token is None
    db.refresh(credential)
    assert credential.access_token_encrypted == stored_access
    assert credential.refresh_token_encrypted == stored_refresh
    assert as_utc(credential.expires_at) == stored_expiry


@pytest.mark.asyncio
async def test_expired_without_refresh_token_returns_none(db, test_user, upstream):
    calendar_service.save_credential(db, test_user.id, "access-1", None, 3600, now=T0)

    async with upstream.client() as client:
        token = await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=T0 + timedelta(hours=2)
        )

    assert token is None
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_transport_error_during_refresh_returns_none(db, test_user, upstream):
    calendar_service.save_credential(db, test_user.id, "access-1", "refresh-1", 3600, now=T0)

    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = boom
    async with upstream.client() as client:
        token = await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=T0 + timedelta(hours=2)
        )
    assert token is None


@pytest.mark.asyncio
async def test_disconnect_then_not_connected(db, test_user, upstream):
    calendar_service.save_credential(db, test_user.id, "access-1", "refresh-1", 3600, now=T0)

    assert calendar_service.disconnect(db, test_user.id) is True
    assert calendar_service.disconnect(db, test_user.id) is False

    async with upstream.client() as client:
        token = await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=T0
        )
        assert token is None

        with pytest.raises(NotConnectedError):
            await calendar_service.list_events(db, test_user.id, client=client, now=T0)


@pytest.mark.asyncio
async def test_list_events_sends_bearer_and_window(db, test_user, upstream):
    calendar_service.save_credential(db, test_user.id, "access-1", "refresh-1", 3600, now=T0)
    upstream.handler = lambda request: httpx.Response(200, json={"items": [{"id": "e1"}]})

    async with upstream.client() as client:
        events = await calendar_service.list_events(
            db, test_user.id, client=client, now=T0
        )

    assert events["items"][0]["id"] == "e1"
    request = upstream.requests[0]
    assert request.headers["Authorization"] == "Bearer access-1"
    assert request.url.path.endswith("/calendars/primary/events")
    assert request.url.params["singleEvents"] == "true"
    assert request.url.params["orderBy"] == "startTime"
    assert request.url.params["timeMin"] == T0.isoformat()
    assert request.url.params["timeMax"] == (T0 + timedelta(days=30)).isoformat()


@pytest.mark.asyncio
async def test_calendar_api_error_raises_upstream_failure(db, test_user, upstream):
    calendar_service.save_credential(db, test_user.id, "access-1", "refresh-1", 3600, now=T0)
    upstream.handler = lambda request: httpx.Response(403, json={"error": "forbidden"})

    async with upstream.client() as client:
        with pytest.raises(UpstreamFailure) as exc_info:
            await calendar_service.create_event(
                db, test_user.id, {"summary": "Checkup"}, client=client, now=T0
            )

    assert exc_info.value.status == 403


def test_auth_url_requests_offline_access_with_consent():
    url = calendar_service.get_auth_url("https://app.test/cb", "state-123")
    query = parse_qs(url.split("?", 1)[1])
    assert query["access_type"] == ["offline"]
    assert query["prompt"] == ["consent"]
    assert query["state"] == ["state-123"]
    assert query["client_id"] == ["test-client-id"]
    assert "https://www.googleapis.com/auth/calendar.events" in query["scope"][0]


@pytest.mark.asyncio
async def test_undecryptable_refresh_token_returns_none_without_network(db, test_user, upstream):
    foreign = Fernet(Fernet.generate_key())
    credential = calendar_service.save_credential(
        db, test_user.id, "access-1", None, 3600, now=T0
    )
    credential.refresh_token_encrypted = foreign.encrypt(b"refresh-1").decode()
    db.commit()

    async with upstream.client() as client:
        token = await calendar_service.get_valid_access_token(
            db, test_user.id, client=client, now=T0 + timedelta(hours=2)
        )

    assert token is None
    assert upstream.requests == []
    db.refresh(credential)
    assert credential.refresh_token_encrypted is not None
