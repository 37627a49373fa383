"""Pydantic schemas for share links."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from growthtrack.schemas.child import ChildSnapshot


class ShareLinkCreate(BaseModel):
    """Request to share a child's records with a doctor."""
    child_id: UUID
    doctor_name: str | None = Field(None, max_length=255)
    doctor_email: EmailStr | None = None
    expires_in_days: int | None = Field(None, ge=1)


class ShareLinkCreated(BaseModel):
    """Returned once at creation; the access code is not listed again in full."""
    id: UUID
    share_url: str
    share_token: str
    access_code: str
    expires_at: datetime


class ShareLinkRead(BaseModel):
    id: UUID
    child_id: UUID
    share_token: str
    access_code: str
    expires_at: datetime
    is_active: bool
    access_count: int
    last_accessed_at: datetime | None
    doctor_name: str | None
    doctor_email: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ShareAccessRequest(BaseModel):
    access_code: str = Field(..., min_length=1, max_length=32)


class ShareAccessResponse(BaseModel):
    snapshot: ChildSnapshot
    expires_at: datetime
