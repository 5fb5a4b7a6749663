"""Service test fixtures — async DB, frozen clock, services and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database with foreign keys enforced
    - get_db and get_clock dependencies overridden for route tests
    - The clock starts at 2026-10-18 12:00 UTC and only moves when a test advances it

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for service tests
      (PostgreSQL-specific features are not exercised here)
    - StaticPool: all sessions share the single in-memory connection
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)
from sqlalchemy.pool import StaticPool

import togeeat.infrastructure.database as db_module
import togeeat.models  # noqa: F401
from togeeat.api.deps import get_clock
from togeeat.config import get_settings
from togeeat.db.base import Base
from togeeat.infrastructure.database import DatabaseSessionManager, get_db
from togeeat.infrastructure.matching_repository import SqlMatchingRepository
from togeeat.main import app
from togeeat.models.user import User
from togeeat.services.matching_lifecycle import MatchingLifecycle
from togeeat.services.membership_manager import MembershipManager

START = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def _enforce_foreign_keys(dbapi_connection, connection_record):
    # SQLite ships with foreign keys off; PostgreSQL always enforces them
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    event.listen(engine.sync_engine, "connect", _enforce_foreign_keys)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def repo(test_db):
    return SqlMatchingRepository(test_db)


@pytest.fixture
def lifecycle(repo, settings, clock):
    return MatchingLifecycle(repo, settings, clock)


@pytest.fixture
def membership(repo, clock):
    return MembershipManager(repo, clock)


@pytest.fixture
async def users(test_db):
    """Four directory users: alice(1) bob(2) carol(3) Bobby Tables(4)."""
    rows = [
        User(id=1, name="alice", email="alice@example.com"),
        User(id=2, name="bob", email="bob@example.com"),
        User(id=3, name="carol", email="carol@example.com"),
        User(id=4, name="Bobby Tables", email="bobby@example.com"),
    ]
    test_db.add_all(rows)
    await test_db.commit()
    return {u.name: u for u in rows}


@pytest.fixture
def token_for(settings):
    def _make(user_id: int) -> dict[str, str]:
        token = jwt.encode(
            {"sub": str(user_id)}, settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        return {"Authorization": f"Bearer {token}"}
    return _make


@pytest.fixture
async def client(test_engine, test_session_factory, clock):
    """FastAPI test client with DB and clock dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
