"""Search synchronization endpoints: status, manual run, full rebuild."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from board.api.deps import get_search_index, get_session, get_sync_queue, get_sync_worker
from board.schemas.sync import RebuildResponse, SyncRunResponse, SyncStatusResponse
from board.services.reindex_service import rebuild_search_index
from board.services.search_index import SearchIndex
from board.services.sync_queue import SyncEventQueue
from board.services.sync_worker import SyncRunResult, SyncWorker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sync", tags=["sync"])


def _run_response(result: SyncRunResult) -> SyncRunResponse:
    return SyncRunResponse(
        processed=result.processed,
        succeeded=result.succeeded,
        failed=result.failed,
    )


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    queue: Annotated[SyncEventQueue, Depends(get_sync_queue)],
    worker: Annotated[SyncWorker, Depends(get_sync_worker)],
) -> SyncStatusResponse:
    """Report queue depth and the most recent worker run."""
    last = worker.last_result
    return SyncStatusResponse(
        queue_size=queue.size(),
        worker_running=worker.is_running,
        interval_seconds=worker.interval_seconds,
        last_run=_run_response(last) if last is not None else None,
    )


@router.post("/run", response_model=SyncRunResponse)
async def sync_run(
    worker: Annotated[SyncWorker, Depends(get_sync_worker)],
) -> SyncRunResponse:
    """Apply queued events now instead of waiting for the next tick."""
    result = await worker.run_once()
    return _run_response(result)


@router.post("/rebuild", response_model=RebuildResponse)
async def sync_rebuild(
    session: Annotated[AsyncSession, Depends(get_session)],
    search_index: Annotated[SearchIndex, Depends(get_search_index)],
    worker: Annotated[SyncWorker, Depends(get_sync_worker)],
) -> RebuildResponse:
    """Rebuild the Search Index from the Post Store.

    Worker runs are held off for the duration. Events queued meanwhile are
    applied by the next run on top of the rebuilt index.
    """
    async with worker.paused():
        indexed, failed = await rebuild_search_index(session, search_index)
    logger.info("Manual search index rebuild: indexed=%d failed=%d", indexed, failed)
    return RebuildResponse(indexed=indexed, failed=failed)
