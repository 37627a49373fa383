"""Pydantic schemas for API request/response models."""

from growthtrack.schemas.auth import MeResponse
from growthtrack.schemas.child import (
    ActivityCreate,
    ActivityRead,
    ChildCreate,
    ChildRead,
    ChildSnapshot,
    ChildUpdate,
    MeasurementCreate,
    MeasurementRead,
    MilestoneCreate,
    MilestoneRead,
    MilestoneUpdate,
)
from growthtrack.schemas.share_link import (
    ShareAccessRequest,
    ShareAccessResponse,
    ShareLinkCreate,
    ShareLinkCreated,
    ShareLinkRead,
)
