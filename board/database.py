"""Engines and sessions for the Post Store and the Search Index.

The two stores live in separate SQLite files with one engine each. Only the
Post Store is accessed through ORM sessions; the Search Index issues its own
SQL over a bare engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

if TYPE_CHECKING:
    from board.config import Settings

# Request handlers and the sync worker write concurrently; wait on locks
# instead of failing with "database is locked".
SQLITE_BUSY_TIMEOUT_SECONDS = 15


def _create(url: str, *, echo: bool) -> AsyncEngine:
    connect_args: dict[str, Any] = {}
    if url.startswith("sqlite"):
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_SECONDS
    return create_async_engine(url, echo=echo, connect_args=connect_args)


def create_engine(
    settings: Settings,
) -> tuple[
    AsyncEngine,
    async_sessionmaker[AsyncSession],
]:
    """Create the Post Store engine and its session factory.

    Objects stay usable after commit so services can return them directly.
    """
    engine = _create(settings.database_url, echo=settings.debug)
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    return engine, session_factory


def create_search_engine(settings: Settings) -> AsyncEngine:
    return _create(settings.search_database_url, echo=settings.debug)
