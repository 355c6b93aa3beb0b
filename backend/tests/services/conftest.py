"""Service test fixtures: async DB, realtime hub, fake upstreams and the FastAPI client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - Module-level in-memory state (locks, flow positions, hub, registry) is reset per test
    - get_db and the upstream client providers are overridden on the app
    - db_manager is patched for the SSE feed, which opens its own DB sessions

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (PostgreSQL-specific features are not exercised here)
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import elevenpoints.api.dependencies as deps_module
import elevenpoints.infrastructure.database as db_module
import elevenpoints.services.game_flow_driver as flow_module
import elevenpoints.services.host_connection as host_module
import elevenpoints.services.realtime_sync as realtime_module
import elevenpoints.services.scoring as scoring_module
import elevenpoints.services.session_store as store_module
from elevenpoints.db.base import Base
from elevenpoints.infrastructure.database import get_db, DatabaseSessionManager
from elevenpoints.main import app
from elevenpoints.models.session import GameSession
from elevenpoints.services.media_log import MediaLog
from elevenpoints.services.realtime_sync import RealtimeHub
from elevenpoints.services.session_store import SessionStore
from tests.services.fakes import FakeCredentials, FakeImageSearch


@pytest.fixture(autouse=True)
def reset_in_memory_state():
    """Module-level dicts and singletons must not leak between tests."""
    store_module._session_locks.clear()
    scoring_module._marked_questions.clear()
    flow_module._flow_states.clear()
    flow_module._driver_locks.clear()
    realtime_module._hub = None
    host_module._registry = None
    yield
    store_module._session_locks.clear()
    scoring_module._marked_questions.clear()
    flow_module._flow_states.clear()
    flow_module._driver_locks.clear()
    realtime_module._hub = None
    host_module._registry = None


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
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
def hub():
    return RealtimeHub(queue_size=10)


@pytest.fixture
def store(test_db, hub):
    return SessionStore(test_db, hub)


@pytest.fixture
def image_search():
    return FakeImageSearch()


@pytest.fixture
def media_log(test_db, image_search, hub):
    return MediaLog(test_db, image_search, hub)


@pytest.fixture
def credentials():
    return FakeCredentials()


@pytest.fixture
async def seed_session(test_db):
    """Insert a fresh session row directly into the test DB."""
    row = GameSession(id="abcd1234")
    test_db.add(row)
    await test_db.commit()
    await test_db.refresh(row)
    return row


@pytest.fixture
async def client(test_engine, test_session_factory, image_search, credentials):
    """FastAPI test client with DB and upstream dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps_module.get_image_search] = lambda: image_search
    app.dependency_overrides[deps_module.get_credential_client] = lambda: credentials

    # The feed opens its own sessions through db_manager
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
    if host_module._registry is not None:
        await host_module._registry.shutdown()
