"""Full Search Index rebuild from the Post Store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from board.services.document_mapping import document_from_post
from board.services.post_store import iter_all_posts

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from board.services.search_index import SearchIndex

logger = logging.getLogger(__name__)


async def rebuild_search_index(session: AsyncSession, search_index: SearchIndex) -> tuple[int, int]:
    """Drop and recreate the index, then index every post.

    Returns a tuple of (indexed, failed). A post that cannot be indexed is
    logged and skipped; the rebuild continues with the next one.
    """
    await search_index.drop_index()
    await search_index.create_index()

    indexed = 0
    failed = 0
    async for post in iter_all_posts(session):
        try:
            await search_index.upsert(document_from_post(post))
        except Exception as exc:
            failed += 1
            logger.error("Failed to index post %d during rebuild: %s", post.id, exc, exc_info=True)
            continue
        indexed += 1

    logger.info("Search index rebuilt: %d posts indexed, %d failed", indexed, failed)
    return indexed, failed
