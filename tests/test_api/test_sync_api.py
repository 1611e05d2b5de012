"""Tests for the sync status, manual run and rebuild endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from board.config import APP_VERSION
from tests.conftest import create_test_client

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from httpx import AsyncClient

    from board.config import Settings


@pytest.fixture
async def client(test_settings: Settings) -> AsyncGenerator[AsyncClient]:
    """Create test HTTP client."""
    async with create_test_client(test_settings) as ac:
        yield ac


async def _create(client: AsyncClient, title: str) -> int:
    resp = await client.post("/api/posts", json={"title": title, "content": "c", "author": "a"})
    assert resp.status_code == 201
    return int(resp.json()["id"])


class TestSyncStatus:
    @pytest.mark.asyncio
    async def test_initial_status(self, client: AsyncClient) -> None:
        resp = await client.get("/api/sync/status")
        assert resp.status_code == 200
        assert resp.json() == {
            "queue_size": 0,
            "worker_running": False,
            "interval_seconds": 3600.0,
            "last_run": None,
        }

    @pytest.mark.asyncio
    async def test_queue_size_tracks_writes(self, client: AsyncClient) -> None:
        post_id = await _create(client, "one")
        await client.put(f"/api/posts/{post_id}", json={"title": "two", "content": "c"})
        status = (await client.get("/api/sync/status")).json()
        assert status["queue_size"] == 2

    @pytest.mark.asyncio
    async def test_last_run_is_reported(self, client: AsyncClient) -> None:
        await _create(client, "one")
        await client.post("/api/sync/run")
        status = (await client.get("/api/sync/status")).json()
        assert status["queue_size"] == 0
        assert status["last_run"] == {"processed": 1, "succeeded": 1, "failed": 0}


class TestSyncRun:
    @pytest.mark.asyncio
    async def test_empty_queue(self, client: AsyncClient) -> None:
        resp = await client.post("/api/sync/run")
        assert resp.status_code == 200
        assert resp.json() == {"processed": 0, "succeeded": 0, "failed": 0}

    @pytest.mark.asyncio
    async def test_create_then_delete_in_one_batch(self, client: AsyncClient) -> None:
        post_id = await _create(client, "brief")
        await client.delete(f"/api/posts/{post_id}")

        resp = await client.post("/api/sync/run")
        # CREATE fails because the post is gone by the time it is applied.
        assert resp.json() == {"processed": 2, "succeeded": 1, "failed": 1}

        search = await client.get("/api/posts", params={"keyword": "brief"})
        assert search.json()["total_elements"] == 0


class TestRebuild:
    @pytest.mark.asyncio
    async def test_rebuild_indexes_unsynced_posts(self, client: AsyncClient) -> None:
        first = await _create(client, "alpha")
        second = await _create(client, "beta")

        resp = await client.post("/api/sync/rebuild")
        assert resp.status_code == 200
        assert resp.json() == {"indexed": 2, "failed": 0}

        search = await client.get("/api/posts", params={"keyword": "alpha beta"})
        assert sorted(item["id"] for item in search.json()["items"]) == [first, second]

    @pytest.mark.asyncio
    async def test_rebuild_leaves_queue_for_next_run(self, client: AsyncClient) -> None:
        await _create(client, "alpha")
        await client.post("/api/sync/rebuild")

        status = (await client.get("/api/sync/status")).json()
        assert status["queue_size"] == 1

        run = (await client.post("/api/sync/run")).json()
        assert run == {"processed": 1, "succeeded": 1, "failed": 0}


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_check(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {
            "status": "ok",
            "version": APP_VERSION,
            "database": "ok",
            "search_index": "ok",
            "sync_queue_size": 0,
            "sync_worker_running": False,
        }
