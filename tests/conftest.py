"""Shared test fixtures for the bulletin board."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from board.config import Settings
from board.main import create_app
from board.models.base import Base
from board.services.search_index import SearchIndex
from board.services.sync_queue import SyncEventQueue
from board.services.sync_worker import SyncWorker

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_test_client(settings: Settings) -> AsyncGenerator[AsyncClient]:
    """Create an HTTP test client with a fully initialized app.

    Manually performs the work of the application lifespan (both databases,
    sync queue and worker) because ASGITransport does not trigger it. The
    worker loop is not started; tests drive it through ``POST /api/sync/run``
    or ``app.state.sync_worker.run_once()``.
    """
    from board.database import create_engine as create_db_engine
    from board.database import create_search_engine

    app = create_app(settings)

    engine, session_factory = create_db_engine(settings)
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.settings = settings

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    search_engine = create_search_engine(settings)
    search_index = SearchIndex(search_engine)
    await search_index.create_index()
    app.state.search_index = search_index

    queue = SyncEventQueue()
    app.state.sync_queue = queue
    app.state.sync_worker = SyncWorker(
        queue,
        session_factory,
        search_index,
        interval_seconds=settings.sync_interval_seconds,
        event_timeout_seconds=settings.sync_event_timeout_seconds,
    )

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    await engine.dispose()
    await search_engine.dispose()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create test settings with temporary database files."""
    return Settings(
        _env_file=None,
        debug=True,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        search_database_url=f"sqlite+aiosqlite:///{tmp_path / 'search.db'}",
        sync_interval_seconds=3600,
        sync_event_timeout_seconds=2,
    )


@pytest.fixture
async def db_engine(test_settings: Settings) -> AsyncGenerator[AsyncEngine]:
    """Create a test Post Store engine with the schema in place."""
    engine = create_async_engine(
        test_settings.database_url,
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Create a test Post Store session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def search_index(test_settings: Settings) -> AsyncGenerator[SearchIndex]:
    """Create an empty Search Index in its own database."""
    engine = create_async_engine(test_settings.search_database_url, echo=False)
    index = SearchIndex(engine)
    await index.create_index()
    yield index
    await engine.dispose()


@pytest.fixture
def sync_queue() -> SyncEventQueue:
    return SyncEventQueue()


@pytest.fixture
def sync_worker(
    sync_queue: SyncEventQueue,
    session_factory: async_sessionmaker[AsyncSession],
    search_index: SearchIndex,
) -> SyncWorker:
    """Worker wired to the test stores, with a long interval (driven manually)."""
    return SyncWorker(
        sync_queue,
        session_factory,
        search_index,
        interval_seconds=3600,
        event_timeout_seconds=2,
    )
