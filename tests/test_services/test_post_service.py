"""Tests for the post write path and its sync event publication."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import OperationalError

from board.exceptions import PostNotFoundError
from board.schemas.post import PostCreate, PostUpdate
from board.services.datetime_service import ensure_utc
from board.services.post_service import create_post, delete_post, get_post, update_post
from board.services.post_store import find_post_by_id
from board.services.sync_queue import SyncEventKind

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from board.services.sync_queue import SyncEventQueue


def _kinds(queue: SyncEventQueue) -> list[tuple[int, SyncEventKind]]:
    return [(event.post_id, event.kind) for event in queue.drain_all()]


class TestCreate:
    async def test_assigns_id_and_equal_timestamps(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        assert post.id is not None
        assert post.created_at == post.updated_at
        assert (post.title, post.content, post.author) == ("A", "B", "C")

    async def test_enqueues_create_event(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        assert _kinds(sync_queue) == [(post.id, SyncEventKind.CREATE)]

    async def test_strips_title_and_author(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="  Hello ", content="x", author=" bo ")
        )
        assert post.title == "Hello"
        assert post.author == "bo"

    async def test_failed_commit_enqueues_nothing(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        failing = AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("disk full")))
        with (
            patch.object(db_session, "commit", failing),
            pytest.raises(OperationalError),
        ):
            await create_post(
                db_session, sync_queue, PostCreate(title="A", content="B", author="C")
            )
        assert sync_queue.is_empty()


class TestGet:
    async def test_returns_post(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        created = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        fetched = await get_post(db_session, created.id)
        assert fetched.id == created.id
        assert fetched.title == "A"

    async def test_missing_raises(self, db_session: AsyncSession) -> None:
        with pytest.raises(PostNotFoundError) as exc_info:
            await get_post(db_session, 12345)
        assert exc_info.value.post_id == 12345


class TestUpdate:
    async def test_moves_updated_at_only(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        created_at = ensure_utc(post.created_at)

        updated = await update_post(
            db_session, sync_queue, post.id, PostUpdate(title="Z", content="new body")
        )

        assert (updated.title, updated.content) == ("Z", "new body")
        assert updated.author == "C"
        assert ensure_utc(updated.created_at) == created_at
        assert ensure_utc(updated.updated_at) > created_at

    async def test_repeated_updates_keep_updated_at_after_created_at(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        for i in range(3):
            post = await update_post(
                db_session, sync_queue, post.id, PostUpdate(title=f"T{i}", content="c")
            )
            assert ensure_utc(post.updated_at) > ensure_utc(post.created_at)

    async def test_enqueues_update_after_create(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        await update_post(db_session, sync_queue, post.id, PostUpdate(title="Z", content="B"))
        assert _kinds(sync_queue) == [
            (post.id, SyncEventKind.CREATE),
            (post.id, SyncEventKind.UPDATE),
        ]

    async def test_missing_raises_without_event(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        with pytest.raises(PostNotFoundError):
            await update_post(db_session, sync_queue, 999, PostUpdate(title="Z", content="B"))
        assert sync_queue.is_empty()


class TestDelete:
    async def test_removes_post_and_enqueues_delete(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        sync_queue.drain_all()

        await delete_post(db_session, sync_queue, post.id)

        assert await find_post_by_id(db_session, post.id) is None
        assert _kinds(sync_queue) == [(post.id, SyncEventKind.DELETE)]

    async def test_missing_raises_without_event(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        with pytest.raises(PostNotFoundError):
            await delete_post(db_session, sync_queue, 999)
        assert sync_queue.is_empty()

    async def test_second_delete_is_not_found(
        self, db_session: AsyncSession, sync_queue: SyncEventQueue
    ) -> None:
        post = await create_post(
            db_session, sync_queue, PostCreate(title="A", content="B", author="C")
        )
        await delete_post(db_session, sync_queue, post.id)
        with pytest.raises(PostNotFoundError):
            await delete_post(db_session, sync_queue, post.id)
