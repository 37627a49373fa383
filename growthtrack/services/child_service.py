"""Child profile and tracking-data service.

Every lookup is scoped to the owning user; rows belonging to someone else
behave exactly like missing rows.
"""

import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from growthtrack.core.errors import NotFoundError
from growthtrack.core.structured_logging import build_log_context
from growthtrack.db.models import Child, DailyActivity, GrowthMeasurement, Milestone
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

logger = logging.getLogger(__name__)


def calculate_bmi(height_cm: Decimal | None, weight_kg: Decimal | None) -> Decimal | None:
    """weight / height_m^2, one decimal. None unless both readings exist."""
    if not height_cm or not weight_kg:
        return None
    height_m = Decimal(height_cm) / Decimal(100)
    bmi = Decimal(weight_kg) / (height_m * height_m)
    return bmi.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


# =============================================================================
# Children
# =============================================================================

def get_owned_child(db: Session, user_id: UUID, child_id: UUID) -> Child:
    child = (
        db.query(Child)
        .filter(Child.id == child_id, Child.user_id == user_id)
        .first()
    )
    if not child:
        raise NotFoundError("Child not found")
    return child


def list_children(db: Session, user_id: UUID) -> list[Child]:
    return (
        db.query(Child)
        .filter(Child.user_id == user_id)
        .order_by(Child.created_at, Child.name)
        .all()
    )


def create_child(db: Session, user_id: UUID, data: ChildCreate) -> Child:
    child = Child(
        user_id=user_id,
        name=data.name.strip(),
        date_of_birth=data.date_of_birth,
        gender=data.gender.value if data.gender else None,
        avatar_url=data.avatar_url,
    )
    db.add(child)
    db.commit()
    db.refresh(child)
    logger.info(
        "child_created",
        extra=build_log_context(user_id=user_id, child_id=child.id),
    )
    return child


def update_child(db: Session, user_id: UUID, child_id: UUID, data: ChildUpdate) -> Child:
    child = get_owned_child(db, user_id, child_id)
    changes = data.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        child.name = changes["name"].strip()
    if changes.get("date_of_birth") is not None:
        child.date_of_birth = changes["date_of_birth"]
    if "gender" in changes:
        child.gender = changes["gender"].value if changes["gender"] else None
    if "avatar_url" in changes:
        child.avatar_url = changes["avatar_url"]
    db.commit()
    db.refresh(child)
    return child


def delete_child(db: Session, user_id: UUID, child_id: UUID) -> None:
    """Delete a child and, by cascade, its records and share links."""
    child = get_owned_child(db, user_id, child_id)
    db.delete(child)
    db.commit()
    logger.info(
        "child_deleted",
        extra=build_log_context(user_id=user_id, child_id=child_id),
    )


# =============================================================================
# Growth Measurements
# =============================================================================

def add_measurement(
    db: Session, user_id: UUID, child_id: UUID, data: MeasurementCreate
) -> GrowthMeasurement:
    child = get_owned_child(db, user_id, child_id)
    measurement = GrowthMeasurement(
        child_id=child.id,
        measurement_date=data.measurement_date or date.today(),
        height_cm=data.height_cm,
        weight_kg=data.weight_kg,
        bmi=calculate_bmi(data.height_cm, data.weight_kg),
        notes=data.notes,
    )
    db.add(measurement)
    db.commit()
    db.refresh(measurement)
    return measurement


def list_measurements(db: Session, user_id: UUID, child_id: UUID) -> list[GrowthMeasurement]:
    child = get_owned_child(db, user_id, child_id)
    return (
        db.query(GrowthMeasurement)
        .filter(GrowthMeasurement.child_id == child.id)
        .order_by(GrowthMeasurement.measurement_date, GrowthMeasurement.created_at)
        .all()
    )


def delete_measurement(db: Session, user_id: UUID, measurement_id: UUID) -> None:
    measurement = (
        db.query(GrowthMeasurement)
        .join(Child, Child.id == GrowthMeasurement.child_id)
        .filter(GrowthMeasurement.id == measurement_id, Child.user_id == user_id)
        .first()
    )
    if not measurement:
        raise NotFoundError("Measurement not found")
    db.delete(measurement)
    db.commit()


# =============================================================================
# Milestones
# =============================================================================

def _get_owned_milestone(db: Session, user_id: UUID, milestone_id: UUID) -> Milestone:
    milestone = (
        db.query(Milestone)
        .join(Child, Child.id == Milestone.child_id)
        .filter(Milestone.id == milestone_id, Child.user_id == user_id)
        .first()
    )
    if not milestone:
        raise NotFoundError("Milestone not found")
    return milestone


def add_milestone(
    db: Session, user_id: UUID, child_id: UUID, data: MilestoneCreate
) -> Milestone:
    child = get_owned_child(db, user_id, child_id)
    achieved_date = data.achieved_date
    if data.is_achieved and achieved_date is None:
        achieved_date = date.today()
    milestone = Milestone(
        child_id=child.id,
        category=data.category.value,
        title=data.title.strip(),
        description=data.description,
        age_range_months=data.age_range_months,
        is_achieved=data.is_achieved,
        achieved_date=achieved_date if data.is_achieved else None,
        notes=data.notes,
    )
    db.add(milestone)
    db.commit()
    db.refresh(milestone)
    return milestone


def list_milestones(db: Session, user_id: UUID, child_id: UUID) -> list[Milestone]:
    child = get_owned_child(db, user_id, child_id)
    return (
        db.query(Milestone)
        .filter(Milestone.child_id == child.id)
        .order_by(Milestone.category, Milestone.created_at)
        .all()
    )


def update_milestone(
    db: Session, user_id: UUID, milestone_id: UUID, data: MilestoneUpdate
) -> Milestone:
    milestone = _get_owned_milestone(db, user_id, milestone_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("is_achieved") is True:
        milestone.is_achieved = True
        milestone.achieved_date = changes.get("achieved_date") or milestone.achieved_date or date.today()
    elif changes.get("is_achieved") is False:
        milestone.is_achieved = False
        milestone.achieved_date = None
    elif changes.get("achieved_date") is not None and milestone.is_achieved:
        milestone.achieved_date = changes["achieved_date"]

    if "notes" in changes:
        milestone.notes = changes["notes"]

    db.commit()
    db.refresh(milestone)
    return milestone


def delete_milestone(db: Session, user_id: UUID, milestone_id: UUID) -> None:
    milestone = _get_owned_milestone(db, user_id, milestone_id)
    db.delete(milestone)
    db.commit()


# =============================================================================
# Daily Activities
# =============================================================================

def add_activity(
    db: Session, user_id: UUID, child_id: UUID, data: ActivityCreate
) -> DailyActivity:
    child = get_owned_child(db, user_id, child_id)
    activity = DailyActivity(
        child_id=child.id,
        activity_date=data.activity_date or date.today(),
        activity_type=data.activity_type.value,
        value=data.value,
        unit=data.unit,
        mood_rating=data.mood_rating,
        notes=data.notes,
    )
    db.add(activity)
    db.commit()
    db.refresh(activity)
    return activity


def list_activities(
    db: Session, user_id: UUID, child_id: UUID, activity_date: date | None = None
) -> list[DailyActivity]:
    child = get_owned_child(db, user_id, child_id)
    query = db.query(DailyActivity).filter(DailyActivity.child_id == child.id)
    if activity_date is not None:
        query = query.filter(DailyActivity.activity_date == activity_date)
    return query.order_by(
        DailyActivity.activity_date.desc(), DailyActivity.created_at.desc()
    ).all()


def delete_activity(db: Session, user_id: UUID, activity_id: UUID) -> None:
    activity = (
        db.query(DailyActivity)
        .join(Child, Child.id == DailyActivity.child_id)
        .filter(DailyActivity.id == activity_id, Child.user_id == user_id)
        .first()
    )
    if not activity:
        raise NotFoundError("Activity not found")
    db.delete(activity)
    db.commit()


# =============================================================================
# Read-only Snapshot
# =============================================================================

def build_snapshot(db: Session, child_id: UUID) -> ChildSnapshot:
    """
    Read-only projection of a child and its records.

    Queries only; never flushes or commits.
    """
    child = db.get(Child, child_id)
    if not child:
        raise NotFoundError("Child not found")

    measurements = (
        db.query(GrowthMeasurement)
        .filter(GrowthMeasurement.child_id == child_id)
        .order_by(GrowthMeasurement.measurement_date)
        .all()
    )
    milestones = (
        db.query(Milestone)
        .filter(Milestone.child_id == child_id)
        .order_by(Milestone.category, Milestone.created_at)
        .all()
    )
    activities = (
        db.query(DailyActivity)
        .filter(DailyActivity.child_id == child_id)
        .order_by(DailyActivity.activity_date.desc())
        .all()
    )
    return ChildSnapshot(
        child=ChildRead.model_validate(child),
        measurements=[MeasurementRead.model_validate(m) for m in measurements],
        milestones=[MilestoneRead.model_validate(m) for m in milestones],
        activities=[ActivityRead.model_validate(a) for a in activities],
    )
