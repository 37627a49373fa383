"""SQLAlchemy ORM models for users, children, sharing and integrations."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean, CheckConstraint, Date, ForeignKey, Index, Integer, Numeric,
    String, Text, Uuid, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from growthtrack.db.base import Base


# =============================================================================
# Users
# =============================================================================

class User(Base):
    """
    A parent account.

    Identity is issued by the auth provider; this row mirrors its subject id.
    """
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    children: Mapped[list["Child"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )


# =============================================================================
# Children & Tracking Data
# =============================================================================

class Child(Base):
    """A child profile owned by one parent."""
    __tablename__ = "children"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship(back_populates="children")
    measurements: Mapped[list["GrowthMeasurement"]] = relationship(
        back_populates="child",
        cascade="all, delete-orphan",
        order_by="GrowthMeasurement.measurement_date",
    )
    milestones: Mapped[list["Milestone"]] = relationship(
        back_populates="child",
        cascade="all, delete-orphan",
        order_by="Milestone.category",
    )
    activities: Mapped[list["DailyActivity"]] = relationship(
        back_populates="child",
        cascade="all, delete-orphan",
        order_by="DailyActivity.activity_date.desc()",
    )
    share_links: Mapped[list["ShareLink"]] = relationship(
        back_populates="child", cascade="all, delete-orphan"
    )


class GrowthMeasurement(Base):
    """A height/weight reading. BMI is derived when both are present."""
    __tablename__ = "growth_measurements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True
    )
    measurement_date: Mapped[date] = mapped_column(Date, nullable=False)
    height_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    weight_kg: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    bmi: Mapped[Decimal | None] = mapped_column(Numeric(4, 1), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    child: Mapped["Child"] = relationship(back_populates="measurements")


class Milestone(Base):
    """A developmental milestone, achieved or pending."""
    __tablename__ = "milestones"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True
    )
    category: Mapped[str] = mapped_column(String(30), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    age_range_months: Mapped[str | None] = mapped_column(String(20), nullable=True)
    is_achieved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    achieved_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    child: Mapped["Child"] = relationship(back_populates="milestones")


class DailyActivity(Base):
    """A logged daily activity (sleep hours, feedings, mood...)."""
    __tablename__ = "daily_activities"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True
    )
    activity_date: Mapped[date] = mapped_column(Date, nullable=False)
    activity_type: Mapped[str] = mapped_column(String(30), nullable=False)
    value: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    unit: Mapped[str | None] = mapped_column(String(30), nullable=True)
    mood_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    child: Mapped["Child"] = relationship(back_populates="activities")

    __table_args__ = (
        CheckConstraint(
            "mood_rating IS NULL OR (mood_rating >= 1 AND mood_rating <= 5)",
            name="mood_rating",
        ),
    )


# =============================================================================
# Sharing
# =============================================================================

class ShareLink(Base):
    """
    Tokenized read-only access to one child's records.

    Valid only while ``is_active`` and before ``expires_at``; the viewer must
    present both the token and the access code. ``access_count`` and
    ``last_accessed_at`` are the only columns the viewer side ever touches.
    """
    __tablename__ = "share_links"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    child_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("children.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    share_token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    access_code: Mapped[str] = mapped_column(String(6), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    access_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_accessed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    doctor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    doctor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    child: Mapped["Child"] = relationship(back_populates="share_links")

    __table_args__ = (
        Index("idx_share_links_token_code", "share_token", "access_code"),
    )


# =============================================================================
# Integrations
# =============================================================================

class CalendarCredential(Base):
    """
    Per-user Google Calendar OAuth credential.

    One row per user (upsert on ``user_id``). Tokens are Fernet-encrypted.
    """
    __tablename__ = "calendar_credentials"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    access_token_encrypted: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime] = mapped_column(nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    user: Mapped["User"] = relationship()
