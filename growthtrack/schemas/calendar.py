"""Pydantic schemas for the Google Calendar integration."""

from typing import Any

from pydantic import BaseModel, Field


class CalendarStatus(BaseModel):
    connected: bool


class AuthUrlResponse(BaseModel):
    auth_url: str


class ExchangeCodeRequest(BaseModel):
    code: str = Field(..., min_length=1)
    redirect_uri: str = Field(..., min_length=1)
    state: str | None = None


class EventCreateRequest(BaseModel):
    """Event body is forwarded verbatim to the Calendar API."""
    calendar_id: str = "primary"
    event: dict[str, Any]

