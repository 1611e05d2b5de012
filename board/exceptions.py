"""Application-level exception types.

Convention:
- ``PostNotFoundError``: a post id is absent from the Post Store on direct
  lookup, update or delete. The global handler returns 404.
- ``SyncApplyError``: one sync event could not be applied to the Search Index.
  Raised and caught inside the sync worker only; it never reaches a client.
- ``InternalServerError``: for errors whose details must never reach clients.
  The global handler logs the full message at ERROR and returns a generic
  "Internal server error" (500) to the client.
- ``SearchQueryError``: the Search Index failed while answering a query.
- ``ValueError``: for *business logic* validation errors that are safe to
  forward to clients. The global ``ValueError`` handler returns ``str(exc)``
  as the 422 detail.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from board.services.sync_queue import SyncEventKind


class InternalServerError(Exception):
    """Raised for internal errors whose details must not be exposed to clients.

    The global exception handler in ``board/main.py`` catches this, logs
    the full message server-side, and returns HTTP 500 with a generic
    ``"Internal server error"`` detail.
    """


class SearchQueryError(InternalServerError):
    """Raised when the Search Index cannot answer a list/search query."""


class PostNotFoundError(LookupError):
    """Raised when a post id does not exist in the Post Store."""

    def __init__(self, post_id: int) -> None:
        super().__init__(f"Post not found: {post_id}")
        self.post_id = post_id


class SyncApplyError(Exception):
    """Raised when a single sync event fails to apply to the Search Index."""

    def __init__(self, post_id: int, kind: SyncEventKind, reason: str) -> None:
        super().__init__(f"Failed to apply {kind} for post {post_id}: {reason}")
        self.post_id = post_id
        self.kind = kind
        self.reason = reason
