"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel


class MeResponse(BaseModel):
    """Response schema for GET /auth/me endpoint."""
    user_id: UUID
    email: str
    display_name: str
