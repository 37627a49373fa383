"""Public shared-view router (doctor-facing, no session).

Rate limited per IP to slow down access-code guessing.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from growthtrack.core.deps import get_db
from growthtrack.core.errors import ExpiredError, InvalidCredentialsError
from growthtrack.core.rate_limit import limiter, shared_access_limit
from growthtrack.schemas.share_link import ShareAccessRequest, ShareAccessResponse
from growthtrack.services import share_link_service

router = APIRouter(prefix="/shared", tags=["shared"])


@router.post("/{token}/verify", response_model=ShareAccessResponse)
@limiter.limit(shared_access_limit)
def verify_share_access(
    request: Request,
    token: str,
    data: ShareAccessRequest,
    db: Session = Depends(get_db),
):
    """
    Verify token + access code and return the child's read-only records.

    401 for any credential mismatch or revoked link, 410 once expired.
    """
    try:
        access = share_link_service.verify_share_access(db, token, data.access_code)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc))
    except ExpiredError as exc:
        raise HTTPException(status_code=410, detail=str(exc))

    return ShareAccessResponse(snapshot=access.snapshot, expires_at=access.expires_at)
