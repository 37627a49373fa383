"""Tests for the calendar router (auth gating, OAuth flow and error mapping)."""

from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from cryptography.fernet import Fernet
from httpx import AsyncClient

from growthtrack.core.security import create_calendar_state
from growthtrack.db.models import CalendarCredential
from growthtrack.services import calendar_service


@pytest.mark.asyncio
async def test_calendar_endpoints_require_auth(client: AsyncClient):
    assert (await client.get("/calendar/status")).status_code == 401
    assert (await client.get("/calendar/events")).status_code == 401
    assert (
        await client.get("/calendar/auth-url", params={"redirect_uri": "https://app.test/cb"})
    ).status_code == 401


@pytest.mark.asyncio
async def test_auth_url_carries_signed_state(authed_client: AsyncClient):
    response = await authed_client.get(
        "/calendar/auth-url", params={"redirect_uri": "https://app.test/cb"}
    )
    assert response.status_code == 200

    qs = parse_qs(urlparse(response.json()["auth_url"]).query)
    assert qs["access_type"] == ["offline"]
    assert qs["prompt"] == ["consent"]
    assert qs["redirect_uri"] == ["https://app.test/cb"]
    assert qs["state"][0]


@pytest.mark.asyncio
async def test_status_reports_not_connected(authed_client: AsyncClient):
    response = await authed_client.get("/calendar/status")
    assert response.status_code == 200
    assert response.json() == {"connected": False}


@pytest.mark.asyncio
async def test_exchange_code_connects_account(authed_client: AsyncClient, test_auth, upstream):
    upstream.handler = lambda request: httpx.Response(
        200, json={"access_token": "a-1", "refresh_token": "r-1", "expires_in": 3600}
    )

    response = await authed_client.post(
        "/calendar/exchange-code",
        json={
            "code": "auth-code",
            "redirect_uri": "https://app.test/cb",
            "state": create_calendar_state(test_auth.user.id),
        },
    )
    assert response.status_code == 200
    assert response.json() == {"success": True}

    status_response = await authed_client.get("/calendar/status")
    assert status_response.json() == {"connected": True}


@pytest.mark.asyncio
async def test_exchange_code_rejects_foreign_state(authed_client: AsyncClient, other_user, upstream):
    response = await authed_client.post(
        "/calendar/exchange-code",
        json={
            "code": "auth-code",
            "redirect_uri": "https://app.test/cb",
            "state": create_calendar_state(other_user.id),
        },
    )
    assert response.status_code == 400
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_exchange_code_provider_error_is_bad_gateway(authed_client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(
        400, json={"error": "invalid_grant", "error_description": "Code already used"}
    )

    response = await authed_client.post(
        "/calendar/exchange-code",
        json={"code": "used", "redirect_uri": "https://app.test/cb"},
    )
    assert response.status_code == 502
    body = response.json()
    assert body["detail"] == "Code already used"
    assert body["upstream_status"] == 400


@pytest.mark.asyncio
async def test_events_when_not_connected_is_401(authed_client: AsyncClient):
    response = await authed_client.get("/calendar/events")
    assert response.status_code == 401
    assert response.json()["detail"] == "Not connected to Google Calendar"


@pytest.mark.asyncio
async def test_events_upstream_error_is_502(authed_client: AsyncClient, db, test_auth, upstream):
    calendar_service.save_credential(db, test_auth.user.id, "a-1", "r-1", 3600)
    upstream.handler = lambda request: httpx.Response(500, text="backend error")

    response = await authed_client.get("/calendar/events")
    assert response.status_code == 502
    assert response.json()["upstream_status"] == 500


@pytest.mark.asyncio
async def test_create_and_delete_event(authed_client: AsyncClient, db, test_auth, upstream):
    calendar_service.save_credential(db, test_auth.user.id, "a-1", "r-1", 3600)

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            return httpx.Response(200, json={"id": "evt-1", "summary": "Checkup"})
        return httpx.Response(204)

    upstream.handler = handler

    created = await authed_client.post(
        "/calendar/events", json={"event": {"summary": "Checkup"}}
    )
    assert created.status_code == 201
    assert created.json()["id"] == "evt-1"

    deleted = await authed_client.delete("/calendar/events/evt-1")
    assert deleted.status_code == 204
    assert upstream.requests[-1].url.path.endswith("/calendars/primary/events/evt-1")


@pytest.mark.asyncio
async def test_disconnect_is_idempotent(authed_client: AsyncClient, db, test_auth):
    calendar_service.save_credential(db, test_auth.user.id, "a-1", "r-1", 3600)

    first = await authed_client.delete("/calendar")
    second = await authed_client.delete("/calendar")
    assert first.status_code == 200
    assert second.status_code == 200

    status_response = await authed_client.get("/calendar/status")
    assert status_response.json() == {"connected": False}


@pytest.mark.asyncio
async def test_undecryptable_token_reads_as_not_connected(
    authed_client: AsyncClient, db, test_auth, upstream
):
    foreign = Fernet(Fernet.generate_key())
    db.add(
        CalendarCredential(
            user_id=test_auth.user.id,
            access_token_encrypted=foreign.encrypt(b"a-1").decode(),
            refresh_token_encrypted=foreign.encrypt(b"r-1").decode(),
            expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
        )
    )
    db.commit()

    status_response = await authed_client.get("/calendar/status")
    assert status_response.status_code == 200
    assert status_response.json() == {"connected": False}

    events = await authed_client.get("/calendar/events")
    assert events.status_code == 401
    assert upstream.requests == []

    assert calendar_service.get_credential(db, test_auth.user.id) is not None


@pytest.mark.asyncio
async def test_events_rate_limited_upstream_passes_through(
    authed_client: AsyncClient, db, test_auth, upstream
):
    calendar_service.save_credential(db, test_auth.user.id, "a-1", "r-1", 3600)
    upstream.handler = lambda request: httpx.Response(429, json={"error": "rateLimitExceeded"})

    response = await authed_client.get("/calendar/events")
    assert response.status_code == 429
    assert response.json()["upstream_status"] == 429
