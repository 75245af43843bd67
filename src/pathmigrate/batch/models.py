# src/pathmigrate/batch/models.py - v1
"""Batch models: FileEntry, ScanResult, ShardResult, MigrationResult."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class WorkerState(str, Enum):
    """Per-shard worker lifecycle."""

    IDLE = "idle"
    READING = "reading"
    PROCESSING = "processing"
    ADVANCING = "advancing"
    COMPLETED = "completed"
    FAILED = "failed"


class FileEntry(BaseModel):
    """One discovered physical file, projected into a path record."""

    physical_path: str
    file_system: str
    path: str
    store_path: str
    size_bytes: int
    last_modified: datetime
    checksum: str | None = None


class ScanResult(BaseModel):
    """Summary of a scan run."""

    storage_root: str
    total_paths: int
    shard_count: int
    shard_files: list[str] = Field(default_factory=list)
    duration_seconds: float


class ShardResult(BaseModel):
    """Outcome of one worker run."""

    shard: str
    state: WorkerState
    total: int = 0
    migrated: int = 0
    failed: int = 0
    indexed: int = 0
    error: str | None = None
    duration_seconds: float = 0.0


class MigrationResult(BaseModel):
    """Aggregated outcome of a migrate run."""

    shards: list[ShardResult] = Field(default_factory=list)
    scanned_stores: list[str] = Field(default_factory=list)
    completed: bool = False
    duration_seconds: float = 0.0

    @property
    def migrated(self) -> int:
        return sum(s.migrated for s in self.shards)

    @property
    def failed(self) -> int:
        return sum(s.failed for s in self.shards)

    @property
    def failed_shards(self) -> list[ShardResult]:
        return [s for s in self.shards if s.state is WorkerState.FAILED]
