"""Children router - profiles plus measurements, milestones and activities.

Mixed paths: collection endpoints are nested under /children/{child_id},
single-row deletes/updates live at /measurements/{id}, /milestones/{id},
/activities/{id}.
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from growthtrack.core.deps import get_current_user, get_db
from growthtrack.core.errors import NotFoundError
from growthtrack.db.models import User
from growthtrack.schemas.child import (
    ActivityCreate,
    ActivityRead,
    ChildCreate,
    ChildRead,
    ChildUpdate,
    MeasurementCreate,
    MeasurementRead,
    MilestoneCreate,
    MilestoneRead,
    MilestoneUpdate,
)
from growthtrack.services import child_service

router = APIRouter(tags=["children"])


def _not_found(exc: NotFoundError) -> HTTPException:
    return HTTPException(status_code=404, detail=str(exc))


# =============================================================================
# Children
# =============================================================================

@router.get("/children", response_model=list[ChildRead])
def list_children(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's children."""
    return child_service.list_children(db, user.id)


@router.post("/children", response_model=ChildRead, status_code=201)
def create_child(
    data: ChildCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return child_service.create_child(db, user.id, data)


@router.get("/children/{child_id}", response_model=ChildRead)
def get_child(
    child_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return child_service.get_owned_child(db, user.id, child_id)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.patch("/children/{child_id}", response_model=ChildRead)
def update_child(
    child_id: UUID,
    data: ChildUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return child_service.update_child(db, user.id, child_id, data)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.delete("/children/{child_id}", status_code=204)
def delete_child(
    child_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a child with all records and share links."""
    try:
        child_service.delete_child(db, user.id, child_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# =============================================================================
# Growth Measurements
# =============================================================================

@router.get("/children/{child_id}/measurements", response_model=list[MeasurementRead])
def list_measurements(
    child_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Measurements oldest first (chart order)."""
    try:
        return child_service.list_measurements(db, user.id, child_id)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.post(
    "/children/{child_id}/measurements",
    response_model=MeasurementRead,
    status_code=201,
)
def add_measurement(
    child_id: UUID,
    data: MeasurementCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return child_service.add_measurement(db, user.id, child_id, data)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.delete("/measurements/{measurement_id}", status_code=204)
def delete_measurement(
    measurement_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        child_service.delete_measurement(db, user.id, measurement_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# =============================================================================
# Milestones
# =============================================================================

@router.get("/children/{child_id}/milestones", response_model=list[MilestoneRead])
def list_milestones(
    child_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return child_service.list_milestones(db, user.id, child_id)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.post(
    "/children/{child_id}/milestones",
    response_model=MilestoneRead,
    status_code=201,
)
def add_milestone(
    child_id: UUID,
    data: MilestoneCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return child_service.add_milestone(db, user.id, child_id, data)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.patch("/milestones/{milestone_id}", response_model=MilestoneRead)
def update_milestone(
    milestone_id: UUID,
    data: MilestoneUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Toggle achievement or edit notes."""
    try:
        return child_service.update_milestone(db, user.id, milestone_id, data)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.delete("/milestones/{milestone_id}", status_code=204)
def delete_milestone(
    milestone_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        child_service.delete_milestone(db, user.id, milestone_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)


# =============================================================================
# Daily Activities
# =============================================================================

@router.get("/children/{child_id}/activities", response_model=list[ActivityRead])
def list_activities(
    child_id: UUID,
    activity_date: date | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return child_service.list_activities(db, user.id, child_id, activity_date)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.post(
    "/children/{child_id}/activities",
    response_model=ActivityRead,
    status_code=201,
)
def add_activity(
    child_id: UUID,
    data: ActivityCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return child_service.add_activity(db, user.id, child_id, data)
    except NotFoundError as exc:
        raise _not_found(exc)


@router.delete("/activities/{activity_id}", status_code=204)
def delete_activity(
    activity_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        child_service.delete_activity(db, user.id, activity_id)
    except NotFoundError as exc:
        raise _not_found(exc)
    return Response(status_code=204)
