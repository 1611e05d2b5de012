"""Periodic worker that mirrors queued post changes into the Search Index.

Delivery is at-most-once: a drained event that fails to apply is logged,
counted and dropped. The document for that post stays stale until a later
event for the same id, or a full rebuild, corrects it.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from board.exceptions import SyncApplyError
from board.services.document_mapping import document_from_post
from board.services.post_store import find_post_by_id
from board.services.sync_queue import SyncEventKind

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from board.models.post import Post
    from board.services.search_index import SearchIndex
    from board.services.sync_queue import SyncEvent, SyncEventQueue

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INTERVAL_SECONDS = 30.0
DEFAULT_EVENT_TIMEOUT_SECONDS = 5.0


@dataclass
class SyncRunResult:
    """Counts for one batch run."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0


class SyncWorker:
    """Drains the sync queue and applies each event to the Search Index.

    Runs never overlap: the periodic loop, manual ``run_once`` calls and the
    shutdown flush all serialize on one ``asyncio.Lock``. The loop schedules
    each run relative to the previous start; a run that takes longer than the
    interval is followed immediately by the next one.
    """

    def __init__(
        self,
        queue: SyncEventQueue,
        session_factory: async_sessionmaker[AsyncSession],
        search_index: SearchIndex,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        event_timeout_seconds: float = DEFAULT_EVENT_TIMEOUT_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            msg = f"interval_seconds must be positive, got {interval_seconds}"
            raise ValueError(msg)
        if event_timeout_seconds <= 0:
            msg = f"event_timeout_seconds must be positive, got {event_timeout_seconds}"
            raise ValueError(msg)
        self._queue = queue
        self._session_factory = session_factory
        self._search_index = search_index
        self._interval = interval_seconds
        self._event_timeout = event_timeout_seconds
        self._run_lock = asyncio.Lock()
        self._stop_requested = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._last_result: SyncRunResult | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        """Whether the periodic loop task is alive."""
        return self._task is not None and not self._task.done()

    @property
    def last_result(self) -> SyncRunResult | None:
        """Counts from the most recent run, or None before the first one."""
        return self._last_result

    def start(self) -> None:
        """Start the periodic loop. Idempotent."""
        if self.is_running:
            return
        self._stop_requested.clear()
        self._task = asyncio.create_task(self._run_forever(), name="search-sync-worker")
        logger.info("Search sync worker started (interval=%.1fs)", self._interval)

    async def stop(self, *, flush: bool = False) -> None:
        """Stop the periodic loop and optionally apply what is still queued.

        A batch that is already running is allowed to finish, so every event
        it drained is applied or counted as failed before the loop exits.
        """
        if self._task is not None:
            self._stop_requested.set()
            try:
                await self._task
            finally:
                self._task = None
            logger.info("Search sync worker stopped")
        if flush:
            result = await self.run_once()
            if result.processed:
                logger.info(
                    "Flushed %d sync events on shutdown (failed=%d)",
                    result.processed,
                    result.failed,
                )

    @contextlib.asynccontextmanager
    async def paused(self) -> AsyncIterator[None]:
        """Hold off batch runs while the caller works on the index directly."""
        async with self._run_lock:
            yield

    async def run_once(self) -> SyncRunResult:
        """Drain the queue and apply the whole batch in FIFO order."""
        async with self._run_lock:
            result = await self._run_batch()
        self._last_result = result
        return result

    async def _run_forever(self) -> None:
        loop = asyncio.get_running_loop()
        while not self._stop_requested.is_set():
            started = loop.time()
            try:
                await self.run_once()
            except Exception as exc:
                logger.error("Search sync run aborted: %s", exc, exc_info=True)
            delay = started + self._interval - loop.time()
            if delay > 0:
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(self._stop_requested.wait(), timeout=delay)

    async def _run_batch(self) -> SyncRunResult:
        if self._queue.is_empty():
            logger.debug("No sync events to process")
            return SyncRunResult()

        events = self._queue.drain_all()
        logger.info("Search sync started: %d events queued", len(events))

        result = SyncRunResult(processed=len(events))
        for event in events:
            try:
                await self._apply(event)
            except SyncApplyError as exc:
                result.failed += 1
                logger.error(
                    "Sync event failed: post_id=%d kind=%s: %s",
                    exc.post_id,
                    exc.kind,
                    exc.reason,
                    exc_info=exc,
                )
            else:
                result.succeeded += 1

        logger.info(
            "Search sync finished: succeeded=%d failed=%d", result.succeeded, result.failed
        )
        return result

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self._event_timeout)

    async def _load_post(self, post_id: int) -> Post | None:
        async with self._session_factory() as session:
            return await self._bounded(find_post_by_id(session, post_id))

    async def _apply(self, event: SyncEvent) -> None:
        """Apply one event. Any failure is re-raised as ``SyncApplyError``."""
        try:
            if event.kind == SyncEventKind.DELETE:
                await self._bounded(self._search_index.delete_by_id(event.post_id))
                logger.info("Removed post %d from search index", event.post_id)
                return

            post = await self._load_post(event.post_id)
            if post is None:
                raise SyncApplyError(event.post_id, event.kind, "post no longer exists")
            await self._bounded(self._search_index.upsert(document_from_post(post)))
            logger.info("Indexed post %d (%s)", event.post_id, event.kind)
        except SyncApplyError:
            raise
        except TimeoutError as exc:
            raise SyncApplyError(
                event.post_id, event.kind, f"timed out after {self._event_timeout:.1f}s"
            ) from exc
        except Exception as exc:
            reason = str(exc) or type(exc).__name__
            raise SyncApplyError(event.post_id, event.kind, reason) from exc
