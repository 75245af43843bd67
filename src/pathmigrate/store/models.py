# src/pathmigrate/store/models.py - v1
"""Target store models: PathRecord, FileInfo."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class FileInfo(BaseModel):
    """Content identity of an already-mapped path."""

    file_id: str
    file_storage: str


class PathRecord(BaseModel):
    """One row of the path map, keyed by (file_system, path)."""

    file_system: str
    path: str
    creation: datetime
    file_id: str
    size: int
    file_storage: str
    checksum: str | None = None

    @property
    def parent_path(self) -> str:
        parent, _, _ = self.path.rpartition("/")
        return parent or "/"

    @property
    def filename(self) -> str:
        return self.path.rpartition("/")[2]
