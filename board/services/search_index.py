"""Search Index: denormalized post documents with an FTS5 full-text index.

The index lives in its own database. ``search_documents`` stores one row per
post; ``search_documents_fts`` is an external-content FTS5 table over its
``title`` and ``content`` columns. Because the FTS table does not own its
content, every change to a base row is mirrored by first removing the old
tokens (FTS5 ``'delete'`` command with the previous values) and then
inserting the new ones.

Keyword matching is case-insensitive substring matching. The FTS table uses
the ``trigram`` tokenizer, which answers tokens of three or more characters
from the index; shorter tokens fall back to ``LIKE`` on the base table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    DateTime,
    Integer,
    Row,
    String,
    Text,
    delete,
    func,
    insert,
    select,
    text,
    update,
)

from board.models.search import SearchBase, SearchDocumentRow
from board.schemas.post import SortDirection

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

logger = logging.getLogger(__name__)

_FTS_CREATE_SQL = text(
    "CREATE VIRTUAL TABLE IF NOT EXISTS search_documents_fts USING fts5("
    "title, content, content='search_documents', content_rowid='id', "
    "tokenize='trigram')"
)

_FTS_DROP_SQL = text("DROP TABLE IF EXISTS search_documents_fts")

_FTS_DELETE_SQL = text(
    "INSERT INTO search_documents_fts(search_documents_fts, rowid, title, content) "
    "VALUES ('delete', :rowid, :title, :content)"
)

_FTS_INSERT_SQL = text(
    "INSERT INTO search_documents_fts(rowid, title, content) VALUES (:rowid, :title, :content)"
)

_FTS_MATCH_CLAUSE = (
    "d.id IN (SELECT rowid FROM search_documents_fts WHERE search_documents_fts MATCH :match)"
)

_COUNT_SQL = "SELECT count(*) FROM search_documents d WHERE {where}"

_PAGE_SQL = """
    SELECT d.id, d.title, d.content, d.author, d.created_at, d.updated_at
    FROM search_documents d
    WHERE {where}
    ORDER BY d.created_at {direction}, d.id {direction}
    LIMIT :limit OFFSET :offset
"""

_ORDER_SQL = {SortDirection.ASC: "ASC", SortDirection.DESC: "DESC"}

_DOCUMENT_COLUMNS = {
    "id": Integer,
    "title": Text,
    "content": Text,
    "author": String,
    "created_at": DateTime(timezone=True),
    "updated_at": DateTime(timezone=True),
}

TITLE_COLUMNS = ("title",)
CONTENT_COLUMNS = ("content",)
TITLE_CONTENT_COLUMNS = ("title", "content")

# Shortest token the trigram tokenizer can match.
MIN_INDEXED_TOKEN_LENGTH = 3


@dataclass(frozen=True)
class SearchDocument:
    """Denormalized copy of a post as stored in the Search Index."""

    id: int
    title: str
    content: str
    author: str
    created_at: datetime
    updated_at: datetime


@dataclass
class SearchPage:
    """One page of search hits and the total number of matches."""

    items: list[SearchDocument]
    total: int


def build_match_query(keyword: str, columns: tuple[str, ...]) -> str | None:
    """Build an FTS5 MATCH expression restricted to ``columns``.

    Each whitespace-separated token of at least three characters becomes a
    quoted phrase, which neutralises FTS5 operators in user input; with the
    trigram tokenizer a phrase matches anywhere inside a word. Tokens are
    OR-ed. Returns None when no token is long enough for the index.
    """
    tokens = [token for token in keyword.split() if len(token) >= MIN_INDEXED_TOKEN_LENGTH]
    if not tokens:
        return None
    colspec = columns[0] if len(columns) == 1 else "{" + " ".join(columns) + "}"
    phrases = ['"' + token.replace('"', '""') + '"' for token in tokens]
    return " OR ".join(f"{colspec} : {phrase}" for phrase in phrases)


def _like_pattern(token: str) -> str:
    escaped = token.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def build_search_filter(
    keyword: str, columns: tuple[str, ...]
) -> tuple[str, dict[str, str]] | None:
    """Build the WHERE clause and bind parameters for a keyword search.

    A document matches when any token occurs as a substring of any of
    ``columns``. Returns None for blank input.
    """
    tokens = keyword.split()
    if not tokens:
        return None
    clauses: list[str] = []
    params: dict[str, str] = {}

    match = build_match_query(keyword, columns)
    if match is not None:
        clauses.append(_FTS_MATCH_CLAUSE)
        params["match"] = match

    short = [token for token in tokens if len(token) < MIN_INDEXED_TOKEN_LENGTH]
    for i, token in enumerate(short):
        name = f"like_{i}"
        params[name] = _like_pattern(token)
        clauses.extend(f"d.{column} LIKE :{name} ESCAPE '\\'" for column in columns)

    return " OR ".join(clauses), params


def _row_to_document(row: Row[Any]) -> SearchDocument:
    return SearchDocument(
        id=row.id,
        title=row.title,
        content=row.content,
        author=row.author,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SearchIndex:
    """Document store for full-text and exact-author post queries.

    Each write runs in its own transaction. The index tables must exist
    before use; call ``create_index()`` once at startup.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_index(self) -> None:
        """Create the document table and FTS5 table if missing."""
        async with self._engine.begin() as conn:
            await conn.run_sync(SearchBase.metadata.create_all)
            await conn.execute(_FTS_CREATE_SQL)

    async def drop_index(self) -> None:
        """Drop the FTS5 table and the document table."""
        async with self._engine.begin() as conn:
            await conn.execute(_FTS_DROP_SQL)
            await conn.run_sync(SearchBase.metadata.drop_all)

    async def _current_row(self, conn: AsyncConnection, doc_id: int) -> Row[Any] | None:
        stmt = select(SearchDocumentRow.title, SearchDocumentRow.content).where(
            SearchDocumentRow.id == doc_id
        )
        result = await conn.execute(stmt)
        return result.first()

    async def upsert(self, document: SearchDocument) -> None:
        """Insert the document, or overwrite it in place if the id exists."""
        values = {
            "title": document.title,
            "content": document.content,
            "author": document.author,
            "created_at": document.created_at,
            "updated_at": document.updated_at,
        }
        async with self._engine.begin() as conn:
            old = await self._current_row(conn, document.id)
            if old is not None:
                await conn.execute(
                    _FTS_DELETE_SQL,
                    {"rowid": document.id, "title": old.title, "content": old.content},
                )
                await conn.execute(
                    update(SearchDocumentRow)
                    .where(SearchDocumentRow.id == document.id)
                    .values(**values)
                )
            else:
                await conn.execute(insert(SearchDocumentRow).values(id=document.id, **values))
            await conn.execute(
                _FTS_INSERT_SQL,
                {"rowid": document.id, "title": document.title, "content": document.content},
            )
        logger.debug("Indexed document %d", document.id)

    async def delete_by_id(self, doc_id: int) -> bool:
        """Remove a document. Returns False when no such document existed."""
        async with self._engine.begin() as conn:
            old = await self._current_row(conn, doc_id)
            if old is None:
                return False
            await conn.execute(
                _FTS_DELETE_SQL,
                {"rowid": doc_id, "title": old.title, "content": old.content},
            )
            await conn.execute(delete(SearchDocumentRow).where(SearchDocumentRow.id == doc_id))
        logger.debug("Removed document %d", doc_id)
        return True

    async def get(self, doc_id: int) -> SearchDocument | None:
        """Return the stored document for ``doc_id``, if any."""
        async with self._engine.connect() as conn:
            result = await conn.execute(
                select(SearchDocumentRow.__table__).where(SearchDocumentRow.id == doc_id)
            )
            row = result.first()
        return _row_to_document(row) if row is not None else None

    async def count(self) -> int:
        """Number of documents in the index."""
        async with self._engine.connect() as conn:
            result = await conn.execute(select(func.count()).select_from(SearchDocumentRow))
            return result.scalar() or 0

    async def _find_matching(
        self,
        keyword: str,
        columns: tuple[str, ...],
        *,
        page: int,
        size: int,
        sort: SortDirection,
    ) -> SearchPage:
        search_filter = build_search_filter(keyword, columns)
        if search_filter is None:
            return SearchPage(items=[], total=0)
        where, params = search_filter
        count_sql = text(_COUNT_SQL.format(where=where))
        page_sql = text(_PAGE_SQL.format(where=where, direction=_ORDER_SQL[sort])).columns(
            **_DOCUMENT_COLUMNS
        )
        async with self._engine.connect() as conn:
            total_result = await conn.execute(count_sql, params)
            total = total_result.scalar() or 0
            offset = page * size
            if offset >= total:
                return SearchPage(items=[], total=total)
            result = await conn.execute(
                page_sql, {**params, "limit": min(size, total - offset), "offset": offset}
            )
            items = [_row_to_document(row) for row in result.all()]
        return SearchPage(items=items, total=total)

    async def find_by_title_containing(
        self, keyword: str, *, page: int, size: int, sort: SortDirection = SortDirection.DESC
    ) -> SearchPage:
        """Substring match against ``title`` only."""
        return await self._find_matching(keyword, TITLE_COLUMNS, page=page, size=size, sort=sort)

    async def find_by_content_containing(
        self, keyword: str, *, page: int, size: int, sort: SortDirection = SortDirection.DESC
    ) -> SearchPage:
        """Substring match against ``content`` only."""
        return await self._find_matching(
            keyword, CONTENT_COLUMNS, page=page, size=size, sort=sort
        )

    async def find_by_title_or_content_containing(
        self, keyword: str, *, page: int, size: int, sort: SortDirection = SortDirection.DESC
    ) -> SearchPage:
        """Substring match against ``title`` OR ``content``."""
        return await self._find_matching(
            keyword, TITLE_CONTENT_COLUMNS, page=page, size=size, sort=sort
        )

    async def find_by_author(
        self, author: str, *, page: int, size: int, sort: SortDirection = SortDirection.DESC
    ) -> SearchPage:
        """Exact, case-sensitive equality on ``author`` (not tokenized)."""
        condition = SearchDocumentRow.author == author
        stmt = select(SearchDocumentRow.__table__).where(condition)
        if sort == SortDirection.ASC:
            stmt = stmt.order_by(SearchDocumentRow.created_at.asc(), SearchDocumentRow.id.asc())
        else:
            stmt = stmt.order_by(
                SearchDocumentRow.created_at.desc(), SearchDocumentRow.id.desc()
            )
        offset = page * size

        async with self._engine.connect() as conn:
            total_result = await conn.execute(
                select(func.count()).select_from(SearchDocumentRow).where(condition)
            )
            total = total_result.scalar() or 0
            if offset >= total:
                return SearchPage(items=[], total=total)
            stmt = stmt.offset(offset).limit(min(size, total - offset))
            result = await conn.execute(stmt)
            items = [_row_to_document(row) for row in result.all()]
        return SearchPage(items=items, total=total)
