"""Post-related schemas."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from board.models.post import AUTHOR_MAX_LENGTH, TITLE_MAX_LENGTH


class SearchType(StrEnum):
    """Which Search Index fields a keyword is matched against."""

    TITLE = "title"
    CONTENT = "content"
    TITLE_CONTENT = "title+content"
    AUTHOR = "author"

    @classmethod
    def _missing_(cls, value: object) -> SearchType | None:
        # An unencoded "+" in a query string arrives as a space.
        if isinstance(value, str) and value.strip().replace(" ", "+") == cls.TITLE_CONTENT.value:
            return cls.TITLE_CONTENT
        return None


class SortDirection(StrEnum):
    """Ordering applied to ``created_at``."""

    ASC = "asc"
    DESC = "desc"


class PostSummary(BaseModel):
    """Uniform post shape returned by every read path."""

    id: int
    title: str
    content: str
    author: str
    created_at: str
    updated_at: str


class PostPage(BaseModel):
    """One page of posts plus totals. ``page`` is 0-based."""

    items: list[PostSummary]
    page: int = Field(ge=0)
    size: int = Field(ge=1)
    total_elements: int = Field(ge=0)
    total_pages: int = Field(ge=0)


class PostCreate(BaseModel):
    """Request to create a new post."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH, description="Post title")
    content: str = Field(min_length=1, description="Post body")
    author: str = Field(min_length=1, max_length=AUTHOR_MAX_LENGTH, description="Author name")

    @field_validator("title", "author", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v


class PostUpdate(BaseModel):
    """Request to update an existing post. The author cannot be changed."""

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH, description="Post title")
    content: str = Field(min_length=1, description="Post body")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return v.strip() if isinstance(v, str) else v
