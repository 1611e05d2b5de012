"""Shared API dependencies: DB session, search index, sync components."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from board.config import Settings
from board.services.search_index import SearchIndex
from board.services.sync_queue import SyncEventQueue
from board.services.sync_worker import SyncWorker


def get_settings(request: Request) -> Settings:
    """Get application settings from app state."""
    settings: Settings = request.app.state.settings
    return settings


async def get_session(request: Request) -> AsyncGenerator[AsyncSession]:
    """Get a Post Store session."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


def get_search_index(request: Request) -> SearchIndex:
    """Get the Search Index from app state."""
    search_index: SearchIndex = request.app.state.search_index
    return search_index


def get_sync_queue(request: Request) -> SyncEventQueue:
    """Get the sync event queue from app state."""
    queue: SyncEventQueue = request.app.state.sync_queue
    return queue


def get_sync_worker(request: Request) -> SyncWorker:
    """Get the sync worker from app state."""
    worker: SyncWorker = request.app.state.sync_worker
    return worker
