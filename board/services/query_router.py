"""List/search routing across the Post Store and the Search Index.

Requests without a keyword are answered by the Post Store; requests with a
keyword go to the Search Index. Either way the caller gets the same
``PostPage`` envelope with 0-based page numbers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from board.exceptions import SearchQueryError
from board.schemas.post import PostPage, SearchType, SortDirection
from board.services.document_mapping import summary_from_document, summary_from_post
from board.services.post_store import find_posts_page

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from board.services.search_index import SearchIndex, SearchPage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryParams:
    """Pagination, ordering and optional keyword filter for one request."""

    page: int = 0
    size: int = 10
    sort: SortDirection = SortDirection.DESC
    keyword: str | None = None
    search_type: SearchType = SearchType.TITLE_CONTENT

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError(f"page must be >= 0, got {self.page}")
        if self.size < 1:
            raise ValueError(f"size must be > 0, got {self.size}")

    @property
    def normalized_keyword(self) -> str | None:
        """The trimmed keyword, or None when absent or blank."""
        if self.keyword is None:
            return None
        keyword = self.keyword.strip()
        return keyword or None


def compute_total_pages(total_elements: int, size: int) -> int:
    """ceil(total / size); zero elements means zero pages."""
    if total_elements <= 0:
        return 0
    return -(-total_elements // size)


async def _search(search_index: SearchIndex, keyword: str, params: QueryParams) -> SearchPage:
    finders = {
        SearchType.TITLE: search_index.find_by_title_containing,
        SearchType.CONTENT: search_index.find_by_content_containing,
        SearchType.TITLE_CONTENT: search_index.find_by_title_or_content_containing,
        SearchType.AUTHOR: search_index.find_by_author,
    }
    finder = finders[params.search_type]
    return await finder(keyword, page=params.page, size=params.size, sort=params.sort)


async def query_posts(
    session: AsyncSession, search_index: SearchIndex, params: QueryParams
) -> PostPage:
    """Return one page of posts from whichever store the request routes to."""
    keyword = params.normalized_keyword
    if keyword is None:
        posts, total = await find_posts_page(
            session, page=params.page, size=params.size, sort=params.sort
        )
        items = [summary_from_post(post) for post in posts]
    else:
        try:
            hits = await _search(search_index, keyword, params)
        except Exception as exc:
            logger.error(
                "Search query failed (type=%s, keyword=%r): %s",
                params.search_type,
                keyword,
                exc,
                exc_info=True,
            )
            raise SearchQueryError(str(exc)) from exc
        total = hits.total
        items = [summary_from_document(document) for document in hits.items]

    return PostPage(
        items=items,
        page=params.page,
        size=params.size,
        total_elements=total,
        total_pages=compute_total_pages(total, params.size),
    )
