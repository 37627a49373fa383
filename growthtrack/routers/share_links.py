"""Share links router - owner-side management of doctor share links."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from growthtrack.core.deps import get_current_user, get_db
from growthtrack.core.errors import NotFoundError
from growthtrack.db.models import User
from growthtrack.schemas.share_link import ShareLinkCreate, ShareLinkCreated, ShareLinkRead
from growthtrack.services import share_link_service

router = APIRouter(prefix="/share-links", tags=["share-links"])


@router.post("", response_model=ShareLinkCreated, status_code=201)
def create_share_link(
    data: ShareLinkCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Create a share link for one of the caller's children.

    The response carries both the URL and the access code; the parent hands
    both to the doctor.
    """
    try:
        link = share_link_service.create_share_link(
            db,
            user.id,
            data.child_id,
            doctor_name=data.doctor_name,
            doctor_email=data.doctor_email,
            expires_in_days=data.expires_in_days,
        )
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    return ShareLinkCreated(
        id=link.id,
        share_url=share_link_service.build_share_url(link.share_token),
        share_token=link.share_token,
        access_code=link.access_code,
        expires_at=link.expires_at,
    )


@router.get("", response_model=list[ShareLinkRead])
def list_share_links(
    child_id: UUID | None = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the caller's share links, optionally for one child."""
    return share_link_service.list_share_links(db, user.id, child_id)


@router.post("/{link_id}/revoke", response_model=ShareLinkRead)
def revoke_share_link(
    link_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return share_link_service.revoke_share_link(db, user.id, link_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/{link_id}", status_code=204)
def delete_share_link(
    link_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        share_link_service.delete_share_link(db, user.id, link_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return Response(status_code=204)
