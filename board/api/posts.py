"""Post API endpoints."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from board.api.deps import get_search_index, get_session, get_settings, get_sync_queue
from board.config import Settings
from board.schemas.post import (
    PostCreate,
    PostPage,
    PostSummary,
    PostUpdate,
    SearchType,
    SortDirection,
)
from board.services.document_mapping import summary_from_post
from board.services.post_service import create_post, delete_post, get_post, update_post
from board.services.query_router import QueryParams, query_posts
from board.services.search_index import SearchIndex
from board.services.sync_queue import SyncEventQueue

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("", response_model=PostPage)
async def list_posts_endpoint(
    session: Annotated[AsyncSession, Depends(get_session)],
    search_index: Annotated[SearchIndex, Depends(get_search_index)],
    settings: Annotated[Settings, Depends(get_settings)],
    page: int = Query(0, ge=0),
    size: int | None = Query(None, ge=1),
    sort: SortDirection = SortDirection.DESC,
    keyword: str | None = None,
    search_type: SearchType = Query(SearchType.TITLE_CONTENT, alias="searchType"),
) -> PostPage:
    """List posts, or search them when a keyword is given."""
    page_size = size if size is not None else settings.default_page_size
    if page_size > settings.max_page_size:
        raise HTTPException(
            status_code=422,
            detail=f"size must be at most {settings.max_page_size}",
        )
    params = QueryParams(
        page=page,
        size=page_size,
        sort=sort,
        keyword=keyword,
        search_type=search_type,
    )
    return await query_posts(session, search_index, params)


@router.get("/{post_id}", response_model=PostSummary)
async def get_post_endpoint(
    post_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PostSummary:
    """Get a single post directly from the Post Store."""
    post = await get_post(session, post_id)
    return summary_from_post(post)


@router.post("", response_model=PostSummary, status_code=201)
async def create_post_endpoint(
    body: PostCreate,
    session: Annotated[AsyncSession, Depends(get_session)],
    queue: Annotated[SyncEventQueue, Depends(get_sync_queue)],
) -> PostSummary:
    """Create a new post."""
    post = await create_post(session, queue, body)
    return summary_from_post(post)


@router.put("/{post_id}", response_model=PostSummary)
async def update_post_endpoint(
    post_id: int,
    body: PostUpdate,
    session: Annotated[AsyncSession, Depends(get_session)],
    queue: Annotated[SyncEventQueue, Depends(get_sync_queue)],
) -> PostSummary:
    """Update the title and content of a post."""
    post = await update_post(session, queue, post_id, body)
    return summary_from_post(post)


@router.delete("/{post_id}", status_code=204)
async def delete_post_endpoint(
    post_id: int,
    session: Annotated[AsyncSession, Depends(get_session)],
    queue: Annotated[SyncEventQueue, Depends(get_sync_queue)],
) -> Response:
    """Delete a post."""
    await delete_post(session, queue, post_id)
    return Response(status_code=204)
