"""Search Index models.

These tables live in the separate search database. ``search_documents`` holds
the denormalized copy of each post; the FTS5 virtual table
``search_documents_fts`` indexes its ``title`` and ``content`` columns and is
created with raw SQL by ``SearchIndex.create_index``.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class SearchBase(DeclarativeBase):
    """Base class for tables in the search database."""


class SearchDocumentRow(SearchBase):
    """Stored search document, keyed by the post id."""

    __tablename__ = "search_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    author: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_search_documents_author", "author"),
        Index("idx_search_documents_created_at", "created_at"),
    )
