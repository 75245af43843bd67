# src/pathmigrate/progress/models.py - v1
"""Progress bookkeeping models: ScanSummary, ProgressState, FailedPath."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class ScanSummary(BaseModel):
    """Content of the scan_final marker."""

    storage_root: str
    total_paths: int
    shard_count: int
    batch_size: int
    scan_filter: str = ""
    completed_at: datetime


class ProgressState(BaseModel):
    """Durable run state written to migrate_progress.

    The todo/ and processed/ directories are authoritative for the shard
    sets; the lists here are refreshed from them on every save.
    """

    status: Literal["in_progress", "completed"] = "in_progress"
    todo: list[str] = Field(default_factory=list)
    processed: list[str] = Field(default_factory=list)
    failed_paths: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    completed_at: datetime | None = None


class FailedPath(BaseModel):
    """One line of the failed_paths log."""

    path: str
    reason: str
