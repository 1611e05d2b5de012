"""Post Store: persistence operations on the ``posts`` table."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select

from board.models.post import Post
from board.schemas.post import SortDirection
from board.services.datetime_service import ensure_utc, now_utc

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

_MIN_TICK = timedelta(microseconds=1)


async def save_post(session: AsyncSession, post: Post) -> Post:
    """Insert or update a post and commit.

    On insert both timestamps are set to the same instant. On update only
    ``updated_at`` moves, and it always ends up strictly after ``created_at``.
    """
    now = now_utc()
    if post.id is None:
        post.created_at = now
        post.updated_at = now
        session.add(post)
    else:
        created_at = ensure_utc(post.created_at)
        post.updated_at = now if now > created_at else created_at + _MIN_TICK
    await session.commit()
    await session.refresh(post)
    return post


async def find_post_by_id(session: AsyncSession, post_id: int) -> Post | None:
    """Return the post with the given id, or None."""
    return await session.get(Post, post_id, populate_existing=True)


async def post_exists(session: AsyncSession, post_id: int) -> bool:
    """Check whether a post with the given id exists."""
    stmt = select(func.count()).select_from(Post).where(Post.id == post_id)
    result = await session.execute(stmt)
    return (result.scalar() or 0) > 0


async def delete_post_by_id(session: AsyncSession, post_id: int) -> None:
    """Delete a post by id and commit. Missing ids are ignored here."""
    await session.execute(delete(Post).where(Post.id == post_id))
    await session.commit()


async def find_posts_page(
    session: AsyncSession,
    *,
    page: int,
    size: int,
    sort: SortDirection = SortDirection.DESC,
) -> tuple[list[Post], int]:
    """Return one page of posts ordered by ``created_at`` and the total count."""
    total_result = await session.execute(select(func.count()).select_from(Post))
    total = total_result.scalar() or 0
    offset = page * size
    if offset >= total:
        return [], total

    stmt = select(Post)
    if sort == SortDirection.ASC:
        stmt = stmt.order_by(Post.created_at.asc(), Post.id.asc())
    else:
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
    stmt = stmt.offset(offset).limit(min(size, total - offset))

    result = await session.execute(stmt)
    return list(result.scalars().all()), total


async def iter_all_posts(session: AsyncSession, *, batch_size: int = 500) -> AsyncIterator[Post]:
    """Yield every post in id order, loading ``batch_size`` rows at a time."""
    last_id = 0
    while True:
        stmt = select(Post).where(Post.id > last_id).order_by(Post.id).limit(batch_size)
        result = await session.execute(stmt)
        batch = result.scalars().all()
        if not batch:
            return
        for post in batch:
            yield post
        last_id = batch[-1].id
