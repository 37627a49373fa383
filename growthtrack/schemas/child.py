"""Pydantic schemas for children and their tracking data."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from growthtrack.db.enums import ActivityType, Gender, MilestoneCategory


# =============================================================================
# Children
# =============================================================================

class ChildCreate(BaseModel):
    """Request to register a child."""
    name: str = Field(..., min_length=1, max_length=255)
    date_of_birth: date
    gender: Gender | None = None
    avatar_url: str | None = None


class ChildUpdate(BaseModel):
    """Request to update a child (partial)."""
    name: str | None = Field(None, min_length=1, max_length=255)
    date_of_birth: date | None = None
    gender: Gender | None = None
    avatar_url: str | None = None


class ChildRead(BaseModel):
    id: UUID
    name: str
    date_of_birth: date
    gender: str | None
    avatar_url: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


# =============================================================================
# Growth Measurements
# =============================================================================

class MeasurementCreate(BaseModel):
    """Request to record a measurement. At least one of height/weight."""
    measurement_date: date | None = None
    height_cm: Decimal | None = Field(None, gt=0, le=250)
    weight_kg: Decimal | None = Field(None, gt=0, le=300)
    notes: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _require_a_reading(self):
        if self.height_cm is None and self.weight_kg is None:
            raise ValueError("height_cm or weight_kg is required")
        return self


class MeasurementRead(BaseModel):
    id: UUID
    child_id: UUID
    measurement_date: date
    height_cm: Decimal | None
    weight_kg: Decimal | None
    bmi: Decimal | None
    notes: str | None

    model_config = {"from_attributes": True}


# =============================================================================
# Milestones
# =============================================================================

class MilestoneCreate(BaseModel):
    category: MilestoneCategory
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    age_range_months: str | None = Field(None, max_length=20)
    is_achieved: bool = False
    achieved_date: date | None = None
    notes: str | None = None


class MilestoneUpdate(BaseModel):
    """Partial update; toggling ``is_achieved`` manages ``achieved_date``."""
    is_achieved: bool | None = None
    achieved_date: date | None = None
    notes: str | None = None


class MilestoneRead(BaseModel):
    id: UUID
    child_id: UUID
    category: str
    title: str
    description: str | None
    age_range_months: str | None
    is_achieved: bool
    achieved_date: date | None
    notes: str | None

    model_config = {"from_attributes": True}


# =============================================================================
# Daily Activities
# =============================================================================

class ActivityCreate(BaseModel):
    activity_type: ActivityType
    activity_date: date | None = None
    value: Decimal | None = Field(None, ge=0)
    unit: str | None = Field(None, max_length=30)
    mood_rating: int | None = Field(None, ge=1, le=5)
    notes: str | None = Field(None, max_length=2000)

    @model_validator(mode="after")
    def _check_payload(self):
        if self.activity_type == ActivityType.MOOD:
            if self.mood_rating is None:
                raise ValueError("mood_rating is required for mood entries")
        elif self.value is None:
            raise ValueError("value is required for this activity type")
        return self


class ActivityRead(BaseModel):
    id: UUID
    child_id: UUID
    activity_date: date
    activity_type: str
    value: Decimal | None
    unit: str | None
    mood_rating: int | None
    notes: str | None

    model_config = {"from_attributes": True}


# =============================================================================
# Read-only Snapshot (shared view)
# =============================================================================

class ChildSnapshot(BaseModel):
    """Read-only projection of one child handed to a verified share viewer."""
    child: ChildRead
    measurements: list[MeasurementRead]
    milestones: list[MilestoneRead]
    activities: list[ActivityRead]
