"""Search synchronization schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SyncRunResponse(BaseModel):
    """Counts from one sync worker run."""

    processed: int = Field(ge=0)
    succeeded: int = Field(ge=0)
    failed: int = Field(ge=0)


class SyncStatusResponse(BaseModel):
    """Current state of the sync queue and worker."""

    queue_size: int = Field(ge=0)
    worker_running: bool
    interval_seconds: float
    last_run: SyncRunResponse | None = None


class RebuildResponse(BaseModel):
    """Result of a full Search Index rebuild."""

    indexed: int = Field(ge=0)
    failed: int = Field(ge=0)
