"""Share link service: owner-side management and doctor-side verification.

Owners create, list, revoke and delete links. Viewers can only verify a
(token, code) pair, which bumps the link's access counter and returns a
read-only snapshot of the child.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from growthtrack.core.config import settings
from growthtrack.core.errors import ExpiredError, InvalidCredentialsError, NotFoundError
from growthtrack.core.security import (
    generate_access_code,
    generate_share_token,
    normalize_access_code,
)
from growthtrack.core.structured_logging import build_log_context
from growthtrack.db.models import Child, ShareLink
from growthtrack.schemas.child import ChildSnapshot
from growthtrack.services import child_service
from growthtrack.utils.expiry import as_utc, is_expired, now_utc

logger = logging.getLogger(__name__)


@dataclass
class VerifiedAccess:
    """Result of a successful verification."""
    share_link_id: UUID
    access_count: int
    expires_at: datetime
    snapshot: ChildSnapshot


# =============================================================================
# Owner Operations
# =============================================================================

def build_share_url(share_token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/shared/{share_token}"


def create_share_link(
    db: Session,
    user_id: UUID,
    child_id: UUID,
    *,
    doctor_name: str | None = None,
    doctor_email: str | None = None,
    expires_in_days: int | None = None,
    now: datetime | None = None,
) -> ShareLink:
    """
    Create a share link for a child the user owns.

    Raises:
        NotFoundError: child missing or owned by someone else
        ValueError: expiry outside 1..SHARE_LINK_MAX_DAYS
    """
    child = child_service.get_owned_child(db, user_id, child_id)

    days = settings.SHARE_LINK_DEFAULT_DAYS if expires_in_days is None else expires_in_days
    if days < 1 or days > settings.SHARE_LINK_MAX_DAYS:
        raise ValueError(
            f"expires_in_days must be between 1 and {settings.SHARE_LINK_MAX_DAYS}"
        )

    link = ShareLink(
        child_id=child.id,
        created_by=user_id,
        share_token=generate_share_token(),
        access_code=generate_access_code(),
        expires_at=as_utc(now or now_utc()) + timedelta(days=days),
        is_active=True,
        access_count=0,
        doctor_name=doctor_name,
        doctor_email=doctor_email,
    )
    db.add(link)
    db.commit()
    db.refresh(link)

    logger.info(
        "share_link_created",
        extra=build_log_context(
            user_id=user_id, child_id=child.id, share_link_id=link.id
        ),
    )
    return link


def list_share_links(
    db: Session, user_id: UUID, child_id: UUID | None = None
) -> list[ShareLink]:
    query = (
        db.query(ShareLink)
        .join(Child, Child.id == ShareLink.child_id)
        .filter(Child.user_id == user_id)
    )
    if child_id is not None:
        query = query.filter(ShareLink.child_id == child_id)
    return query.order_by(ShareLink.created_at.desc()).all()


def _get_owned_link(db: Session, user_id: UUID, link_id: UUID) -> ShareLink:
    link = (
        db.query(ShareLink)
        .join(Child, Child.id == ShareLink.child_id)
        .filter(ShareLink.id == link_id, Child.user_id == user_id)
        .first()
    )
    if not link:
        raise NotFoundError("Share link not found")
    return link


def revoke_share_link(db: Session, user_id: UUID, link_id: UUID) -> ShareLink:
    """Deactivate a link without deleting it. Counts are kept."""
    link = _get_owned_link(db, user_id, link_id)
    if link.is_active:
        link.is_active = False
        db.commit()
        db.refresh(link)
        logger.info(
            "share_link_revoked",
            extra=build_log_context(user_id=user_id, share_link_id=link.id),
        )
    return link


def delete_share_link(db: Session, user_id: UUID, link_id: UUID) -> None:
    link = _get_owned_link(db, user_id, link_id)
    db.delete(link)
    db.commit()
    logger.info(
        "share_link_deleted",
        extra=build_log_context(user_id=user_id, share_link_id=link_id),
    )


# =============================================================================
# Viewer Verification
# =============================================================================

def verify_share_access(
    db: Session,
    token: str,
    code: str,
    *,
    now: datetime | None = None,
) -> VerifiedAccess:
    """
    Verify a (token, code) pair and return the child's read-only snapshot.

    Wrong token, wrong code and revoked links all raise the same
    InvalidCredentialsError. A matching link past its expiry raises
    ExpiredError. On success the access counter is committed before the
    snapshot is read.

    Raises:
        InvalidCredentialsError
        ExpiredError
    """
    now = as_utc(now or now_utc())
    normalized = normalize_access_code(code)

    link = None
    if token and normalized:
        link = (
            db.query(ShareLink)
            .filter(
                ShareLink.share_token == token,
                ShareLink.access_code == normalized,
                ShareLink.is_active.is_(True),
            )
            .first()
        )

    if link is None:
        logger.info("share_access_denied", extra={"reason": "invalid_credentials"})
        raise InvalidCredentialsError("Invalid access code or link")

    if is_expired(link.expires_at, now):
        logger.info(
            "share_access_denied",
            extra={
                "reason": "expired",
                **build_log_context(share_link_id=link.id),
            },
        )
        raise ExpiredError("Share link has expired")

    # Single-row increment so concurrent viewers never lose a count.
    db.execute(
        update(ShareLink)
        .where(ShareLink.id == link.id)
        .values(
            access_count=ShareLink.access_count + 1,
            last_accessed_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(link)

    logger.info(
        "share_access_granted",
        extra=build_log_context(child_id=link.child_id, share_link_id=link.id),
    )

    return VerifiedAccess(
        share_link_id=link.id,
        access_count=link.access_count,
        expires_at=as_utc(link.expires_at),
        snapshot=child_service.build_snapshot(db, link.child_id),
    )
