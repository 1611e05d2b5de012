"""Post service: CRUD on the Post Store plus sync event publication.

Each mutation is committed to the Post Store first; only then is the matching
sync event enqueued. A failed commit propagates to the caller and no event is
produced for it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from board.exceptions import PostNotFoundError
from board.models.post import Post
from board.services.post_store import (
    delete_post_by_id,
    find_post_by_id,
    post_exists,
    save_post,
)
from board.services.sync_queue import SyncEvent

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from board.schemas.post import PostCreate, PostUpdate
    from board.services.sync_queue import SyncEventQueue

logger = logging.getLogger(__name__)


async def create_post(session: AsyncSession, queue: SyncEventQueue, data: PostCreate) -> Post:
    """Create a post and queue its CREATE event."""
    post = await save_post(
        session, Post(title=data.title, content=data.content, author=data.author)
    )
    queue.enqueue(SyncEvent.create(post.id))
    logger.info("Created post %d by %s", post.id, post.author)
    return post


async def get_post(session: AsyncSession, post_id: int) -> Post:
    """Fetch a post from the Post Store or raise ``PostNotFoundError``."""
    post = await find_post_by_id(session, post_id)
    if post is None:
        raise PostNotFoundError(post_id)
    return post


async def update_post(
    session: AsyncSession, queue: SyncEventQueue, post_id: int, data: PostUpdate
) -> Post:
    """Change title and content, keep author and created_at, queue UPDATE."""
    post = await get_post(session, post_id)
    post.title = data.title
    post.content = data.content
    post = await save_post(session, post)
    queue.enqueue(SyncEvent.update(post.id))
    logger.info("Updated post %d", post.id)
    return post


async def delete_post(session: AsyncSession, queue: SyncEventQueue, post_id: int) -> None:
    """Delete a post and queue its DELETE event."""
    if not await post_exists(session, post_id):
        raise PostNotFoundError(post_id)
    await delete_post_by_id(session, post_id)
    queue.enqueue(SyncEvent.delete(post_id))
    logger.info("Deleted post %d", post_id)
