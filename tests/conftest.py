import os
import uuid
from contextlib import contextmanager
from typing import AsyncGenerator, Optional

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.base import Base
from libs.db.session import get_async_db
from services.volunteer_service import models as _volunteer_models  # noqa: F401



# ---------------------------------------------------------------------------
# Auth helpers
# ---------------------------------------------------------------------------


def make_member_user(user_id: Optional[str] = None, email: Optional[str] = None) -> AuthUser:
    user_id = user_id or f"auth-{uuid.uuid4().hex[:8]}"
    return AuthUser(user_id=user_id, email=email, role="volunteer")


def make_admin_user(user_id: Optional[str] = None) -> AuthUser:
    return AuthUser(
        user_id=user_id or f"admin-{uuid.uuid4().hex[:8]}",
        email="admin@example.com",
        role="admin",
    )


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily act as ``user`` for requests against ``app``."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield user
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory SQLite database per test.
    StaticPool keeps the single connection alive across sessions.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a session configured like the application's session factory.
    Operations commit for real; the database is discarded after the test.
    """
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture
def member_user() -> AuthUser:
    return make_member_user(user_id="volunteer-1", email="volunteer@example.com")


@pytest.fixture
def admin_user() -> AuthUser:
    return make_admin_user(user_id="admin-1")


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def volunteer_client(db_session, member_user) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the volunteer app, with the DB dependency
    pointed at ``db_session`` and requests made as ``member_user``.
    """
    from services.volunteer_service.app.main import app

    async def _db_override():
        yield db_session

    app.dependency_overrides[get_async_db] = _db_override
    app.dependency_overrides[get_current_user] = lambda: member_user

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
