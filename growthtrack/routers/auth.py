"""Auth router. Sessions are issued by the auth provider; this only reads them."""

from fastapi import APIRouter, Depends

from growthtrack.core.deps import get_current_user
from growthtrack.db.models import User
from growthtrack.schemas.auth import MeResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=MeResponse)
def me(user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse(user_id=user.id, email=user.email, display_name=user.display_name)
