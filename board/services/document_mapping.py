"""Conversions between Post Store rows, search documents and API summaries.

Both read paths end in the same ``PostSummary`` shape, so list and search
responses are indistinguishable to the client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from board.schemas.post import PostSummary
from board.services.datetime_service import ensure_utc, format_iso
from board.services.search_index import SearchDocument

if TYPE_CHECKING:
    from board.models.post import Post


def document_from_post(post: Post) -> SearchDocument:
    """Build the Search Index document for the current state of a post."""
    return SearchDocument(
        id=post.id,
        title=post.title,
        content=post.content,
        author=post.author,
        created_at=ensure_utc(post.created_at),
        updated_at=ensure_utc(post.updated_at),
    )


def summary_from_post(post: Post) -> PostSummary:
    return PostSummary(
        id=post.id,
        title=post.title,
        content=post.content,
        author=post.author,
        created_at=format_iso(post.created_at),
        updated_at=format_iso(post.updated_at),
    )


def summary_from_document(document: SearchDocument) -> PostSummary:
    return PostSummary(
        id=document.id,
        title=document.title,
        content=document.content,
        author=document.author,
        created_at=format_iso(document.created_at),
        updated_at=format_iso(document.updated_at),
    )
