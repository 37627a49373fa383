"""Google Calendar router.

Handles the per-user OAuth connection and event passthrough.
NotConnectedError and UpstreamFailure are translated by the app-level
exception handlers (401 and 502 respectively).
"""
import logging
from datetime import datetime
from typing import Any

import httpx
from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from growthtrack.core.config import settings
from growthtrack.core.deps import get_current_user, get_db, get_http_client
from growthtrack.core.security import create_calendar_state, verify_calendar_state
from growthtrack.db.models import User
from growthtrack.schemas.calendar import (
    AuthUrlResponse,
    CalendarStatus,
    EventCreateRequest,
    ExchangeCodeRequest,
)
from growthtrack.services import calendar_service

router = APIRouter(prefix="/calendar", tags=["calendar"])
logger = logging.getLogger(__name__)


@router.get("/status", response_model=CalendarStatus)
async def calendar_status(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> CalendarStatus:
    """Connected means a usable token exists (refreshing it if needed)."""
    token = await calendar_service.get_valid_access_token(db, user.id, client=client)
    return CalendarStatus(connected=token is not None)


@router.get("/auth-url", response_model=AuthUrlResponse)
def calendar_auth_url(
    redirect_uri: str,
    user: User = Depends(get_current_user),
) -> AuthUrlResponse:
    """Get the Google consent URL. Frontend should redirect user to it."""
    if not settings.calendar_configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Google Calendar integration not configured. Set GOOGLE_CALENDAR_CLIENT_ID.",
        )
    state = create_calendar_state(user.id)
    return AuthUrlResponse(auth_url=calendar_service.get_auth_url(redirect_uri, state))


@router.post("/exchange-code")
async def calendar_exchange_code(
    data: ExchangeCodeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict[str, Any]:
    """Exchange the callback code for tokens and store them."""
    if data.state is not None:
        valid, error = verify_calendar_state(data.state, user.id)
        if not valid:
            raise HTTPException(status_code=400, detail=error)

    await calendar_service.exchange_authorization_code(
        db, user.id, data.code, data.redirect_uri, client=client
    )
    return {"success": True}


@router.delete("")
def calendar_disconnect(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Disconnect Google Calendar. Succeeds even when nothing was connected."""
    calendar_service.disconnect(db, user.id)
    return {"success": True}


@router.get("/calendars")
async def list_calendars(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict[str, Any]:
    return await calendar_service.list_calendars(db, user.id, client=client)


@router.get("/events")
async def list_events(
    calendar_id: str = "primary",
    time_min: datetime | None = None,
    time_max: datetime | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict[str, Any]:
    """List events (default window: next 30 days)."""
    return await calendar_service.list_events(
        db,
        user.id,
        client=client,
        calendar_id=calendar_id,
        time_min=time_min,
        time_max=time_max,
    )


@router.post("/events", status_code=201)
async def create_event(
    data: EventCreateRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> dict[str, Any]:
    return await calendar_service.create_event(
        db, user.id, data.event, client=client, calendar_id=data.calendar_id
    )


@router.delete("/events/{event_id}", status_code=204)
async def delete_event(
    event_id: str,
    calendar_id: str = "primary",
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> Response:
    await calendar_service.delete_event(
        db, user.id, event_id, client=client, calendar_id=calendar_id
    )
    return Response(status_code=204)
