"""Health check endpoint covering both stores and the sync pipeline."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from board.api.deps import get_search_index, get_session, get_sync_queue, get_sync_worker
from board.config import APP_VERSION
from board.services.search_index import SearchIndex
from board.services.sync_queue import SyncEventQueue
from board.services.sync_worker import SyncWorker

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    search_index: str
    sync_queue_size: int
    sync_worker_running: bool


async def _check_store(name: str, check: Callable[[], Awaitable[object]]) -> str:
    try:
        await check()
    except Exception:
        logger.warning("Health check failed for %s", name, exc_info=True)
        return "error"
    return "ok"


@router.get("/api/health", response_model=HealthResponse)
async def health_check(
    session: Annotated[AsyncSession, Depends(get_session)],
    search_index: Annotated[SearchIndex, Depends(get_search_index)],
    queue: Annotated[SyncEventQueue, Depends(get_sync_queue)],
    worker: Annotated[SyncWorker, Depends(get_sync_worker)],
) -> HealthResponse:
    """Report store reachability, queue depth and whether the worker loop is alive.

    A backlog or a stopped worker does not make the service unhealthy; only an
    unreachable store does.
    """
    database = await _check_store("post store", lambda: session.execute(text("SELECT 1")))
    index = await _check_store("search index", search_index.count)
    return HealthResponse(
        status="ok" if database == index == "ok" else "degraded",
        version=APP_VERSION,
        database=database,
        search_index=index,
        sync_queue_size=queue.size(),
        sync_worker_running=worker.is_running,
    )
