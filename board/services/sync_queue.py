"""In-memory queue of post change notifications for the Search Index.

The write path enqueues an event after each committed Post Store mutation;
the sync worker drains the whole queue periodically. State is lost on restart.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from board.services.datetime_service import now_utc

logger = logging.getLogger(__name__)


class SyncEventKind(StrEnum):
    """Kind of Post Store change carried by a sync event."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class SyncEvent:
    """A post id and what happened to it.

    ``timestamp`` is informational only; ordering comes from queue position.
    """

    post_id: int
    kind: SyncEventKind
    timestamp: datetime = field(default_factory=now_utc)

    @classmethod
    def create(cls, post_id: int) -> SyncEvent:
        return cls(post_id, SyncEventKind.CREATE)

    @classmethod
    def update(cls, post_id: int) -> SyncEvent:
        return cls(post_id, SyncEventKind.UPDATE)

    @classmethod
    def delete(cls, post_id: int) -> SyncEvent:
        return cls(post_id, SyncEventKind.DELETE)


class SyncEventQueue:
    """Unbounded FIFO of sync events.

    Thread-safety: every operation holds an internal ``threading.Lock``, so
    any number of producers (request handlers, threads) may enqueue while the
    single consumer drains. ``drain_all`` swaps the whole buffer under the
    lock; events enqueued after the swap go into the next drain.
    """

    def __init__(self) -> None:
        self._events: deque[SyncEvent] = deque()
        self._lock = threading.Lock()

    def enqueue(self, event: SyncEvent) -> None:
        """Append an event to the tail. Never blocks on the consumer."""
        with self._lock:
            self._events.append(event)
        logger.debug("Queued sync event: post_id=%d kind=%s", event.post_id, event.kind)

    def drain_all(self) -> list[SyncEvent]:
        """Remove and return every queued event in FIFO order."""
        with self._lock:
            drained = self._events
            self._events = deque()
        return list(drained)

    def size(self) -> int:
        """Advisory number of queued events."""
        with self._lock:
            return len(self._events)

    def is_empty(self) -> bool:
        """Advisory emptiness check."""
        return self.size() == 0
