"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Bulletin board application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Core
    debug: bool = False
    expose_docs: bool = False

    # Post Store (system of record)
    database_url: str = "sqlite+aiosqlite:///data/db/board.db"

    # Search Index (derived, eventually consistent)
    search_database_url: str = "sqlite+aiosqlite:///data/db/search.db"
    search_rebuild_on_startup: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)

    # CORS
    cors_origins: list[str] = Field(default_factory=list)

    # Sync worker
    sync_interval_seconds: float = Field(default=30.0, gt=0)
    sync_event_timeout_seconds: float = Field(default=5.0, gt=0)
    sync_flush_on_shutdown: bool = True

    # Listing
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)
