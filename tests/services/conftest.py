"""Service test fixtures — relay runtime, async DB and FastAPI test client.

Invariants:
    - Every test gets a fresh engine, queue, coalescer and deduplicator
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB session
    - The serial queue is closed after each test so no worker outlives its loop

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
    - httpx ASGITransport skips the lifespan, so the client fixture installs the
      runtime on app.state itself
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from deckrelay.db.base import Base
from deckrelay.infrastructure.database import get_db, DatabaseSessionManager
import deckrelay.infrastructure.database as db_module
from deckrelay.main import app
from deckrelay.services.deck_engine import DeckEngine
from deckrelay.services.relay_runtime import build_runtime


@pytest.fixture
def deck_engine():
    return DeckEngine()


@pytest.fixture
async def runtime(deck_engine):
    relay = build_runtime(engine=deck_engine)
    yield relay
    await relay.aclose()


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
def test_db_manager(test_engine, test_session_factory):
    """DatabaseSessionManager bound to the in-memory test engine."""
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = test_session_factory
    return manager


@pytest.fixture
async def client(runtime, test_db_manager, test_session_factory):
    """FastAPI test client with DB dependency overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    # Readiness probe reads db_manager directly
    original_manager = db_module.db_manager
    db_module.db_manager = test_db_manager
    app.state.relay = runtime

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
