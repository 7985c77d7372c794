# This project was developed with assistance from AI tools.
"""Shared fixtures: in-memory SQLite database, collaborator fakes, users.

Every test gets a fresh ``sqlite+aiosqlite`` database built from the models.
``StaticPool`` keeps the single in-memory connection alive across sessions,
so several sessions (or HTTP requests) see the same data.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
import pytest_asyncio
from registry_db import Base, get_db
from registry_db.enums import UserRole
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from registry_api.middleware.auth import get_current_user
from registry_api.schemas.auth import UserContext
from registry_api.services import email as email_mod
from registry_api.services import side_effects as side_effects_mod
from registry_api.services import storage as storage_mod
from registry_api.services.side_effects import SideEffectQueue
from tests.factories import FakeStorage, make_user


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


@pytest.fixture
def owner() -> UserContext:
    return make_user(UserRole.USER, "owner-1")


@pytest.fixture
def other_owner() -> UserContext:
    return make_user(UserRole.USER, "owner-2")


@pytest.fixture
def reviewer() -> UserContext:
    return make_user(UserRole.ADMIN, "reviewer-1", name="Registrar One")


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False,
    )


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def storage(monkeypatch) -> FakeStorage:
    fake = FakeStorage()
    monkeypatch.setattr(storage_mod, "_service", fake)
    return fake


@pytest.fixture
def email_service(monkeypatch) -> MagicMock:
    service = MagicMock()
    service.send_rejection_email = AsyncMock(return_value=True)
    monkeypatch.setattr(email_mod, "_service", service)
    return service


@pytest.fixture
def side_effect_queue(monkeypatch) -> SideEffectQueue:
    queue = SideEffectQueue(max_attempts=2, base_delay=0)
    monkeypatch.setattr(side_effects_mod, "_queue", queue)
    return queue


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


class _Identity:
    """Mutable holder so a test can switch the caller between requests."""

    def __init__(self, user: UserContext):
        self.user = user


@pytest.fixture
def identity(owner) -> _Identity:
    return _Identity(owner)


@pytest_asyncio.fixture
async def api(session_factory, storage, email_service, side_effect_queue, identity):
    """httpx client over the real app with DB and auth overridden."""
    from registry_api.main import app

    async def _get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user] = lambda: identity.user
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

