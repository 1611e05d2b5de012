"""SQLAlchemy ORM models for the bulletin board."""

from board.models.base import Base
from board.models.post import Post
from board.models.search import SearchBase, SearchDocumentRow

__all__ = [
    "Base",
    "Post",
    "SearchBase",
    "SearchDocumentRow",
]
