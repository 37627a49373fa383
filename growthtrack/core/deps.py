"""FastAPI dependencies for authentication, database and outbound HTTP."""

from typing import AsyncGenerator, Generator
from uuid import UUID

import httpx
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from growthtrack.core.security import decode_session_token
from growthtrack.db.models import User
from growthtrack.db.session import SessionLocal

OUTBOUND_TIMEOUT_SECONDS = 30.0


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Outbound HTTP client dependency (OAuth, Calendar, AI gateway).

    Request-scoped; tests override it with a MockTransport client.
    """
    async with httpx.AsyncClient(timeout=OUTBOUND_TIMEOUT_SECONDS) as client:
        yield client


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
) -> User:
    """
    Get authenticated user from the bearer token.

    Validates:
    - Authorization header carries a bearer token
    - JWT is valid and not expired
    - User exists and is active

    Raises:
        HTTPException 401: Authentication failed
    """
    token = _bearer_token(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
        user_id = UUID(payload["sub"])
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")

    return user
