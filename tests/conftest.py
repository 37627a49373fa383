"""
Test configuration and fixtures.

Provides:
- In-memory SQLite session (schema created per test)
- Bearer token minting for authenticated tests
- HTTPX AsyncClient against the ASGI app
- A scriptable upstream (OAuth / Calendar / AI gateway) via httpx.MockTransport
"""
import os
import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Callable, Generator

from cryptography.fernet import Fernet

# Settings are read at import time; configure before importing the app.
os.environ["TESTING"] = "1"
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["FERNET_KEY"] = Fernet.generate_key().decode()
os.environ["GOOGLE_CALENDAR_CLIENT_ID"] = "test-client-id"
os.environ["GOOGLE_CALENDAR_CLIENT_SECRET"] = "test-client-secret"
os.environ["FRONTEND_URL"] = "https://growth.test"

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from growthtrack.core.deps import get_db, get_http_client
from growthtrack.core.security import create_session_token
from growthtrack.db.base import Base
from growthtrack.db.models import Child, GrowthMeasurement, Milestone, User
from growthtrack.main import app


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Fresh in-memory database per test.

    StaticPool keeps a single connection so app code running in the
    threadpool sees the same database as the test.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def test_user(db: Session) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"parent-{uuid.uuid4().hex[:8]}@test.com",
        display_name="Test Parent",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def other_user(db: Session) -> User:
    user = User(
        id=uuid.uuid4(),
        email=f"other-{uuid.uuid4().hex[:8]}@test.com",
        display_name="Other Parent",
    )
    db.add(user)
    db.commit()
    return user


@pytest.fixture(scope="function")
def child(db: Session, test_user: User) -> Child:
    """A child owned by test_user, with one measurement and one milestone."""
    child = Child(
        user_id=test_user.id,
        name="Mia",
        date_of_birth=date(2023, 3, 14),
        gender="female",
    )
    db.add(child)
    db.flush()
    db.add(
        GrowthMeasurement(
            child_id=child.id,
            measurement_date=date(2025, 1, 10),
            height_cm=Decimal("85.0"),
            weight_kg=Decimal("12.00"),
            bmi=Decimal("16.6"),
        )
    )
    db.add(
        Milestone(
            child_id=child.id,
            category="language",
            title="First words",
            is_achieved=True,
            achieved_date=date(2024, 3, 1),
        )
    )
    db.commit()
    db.refresh(child)
    return child


# =============================================================================
# CLI Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def cli_session(db: Session, monkeypatch) -> None:
    """
    Point CLI commands at the test database.

    Commands open and close their own sessions, so they get a separate
    session on the same engine instead of the test's.
    """
    from growthtrack import cli

    monkeypatch.setattr(
        cli, "SessionLocal", sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())
    )


# =============================================================================
# Auth Fixtures
# =============================================================================

@dataclass
class TestAuth:
    """Test authentication context."""
    user: User
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture(scope="function")
def test_auth(test_user: User) -> TestAuth:
    return TestAuth(user=test_user, token=create_session_token(test_user.id))


# =============================================================================
# Upstream (outbound HTTP) Fixture
# =============================================================================

@dataclass
class FakeUpstream:
    """
    Records outbound requests and answers them with a scripted handler.

    Set ``handler`` to a callable taking an httpx.Request and returning an
    httpx.Response.
    """
    handler: Callable[[httpx.Request], httpx.Response] | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.handler is None:
            raise AssertionError(f"Unexpected outbound request: {request.method} {request.url}")
        return self.handler(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))

    def calls_to(self, fragment: str) -> list[httpx.Request]:
        return [r for r in self.requests if fragment in str(r.url)]


@pytest.fixture(scope="function")
def upstream() -> FakeUpstream:
    return FakeUpstream()


# =============================================================================
# Client Fixtures
# =============================================================================

def _install_overrides(db: Session, upstream: FakeUpstream) -> None:
    def override_get_db():
        yield db

    async def override_get_http_client():
        async with upstream.client() as c:
            yield c

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_http_client] = override_get_http_client


@pytest.fixture(scope="function")
async def client(db: Session, upstream: FakeUpstream) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated AsyncClient for public endpoints."""
    _install_overrides(db, upstream)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def authed_client(
    db: Session,
    upstream: FakeUpstream,
    test_auth: TestAuth,
) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient carrying the test user's bearer token."""
    _install_overrides(db, upstream)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=test_auth.headers,
    ) as c:
        yield c
    app.dependency_overrides.clear()
