# src/pathmigrate/store/base_path_store.py - v1
"""Abstract path-mapped store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from pathmigrate.store.models import FileInfo, PathRecord


class BasePathStore(ABC):
    """Unified interface for the migration target backends.

    Implementations must be safe to call from several worker threads.
    """

    @abstractmethod
    def insert(self, record: PathRecord) -> None:
        """Upsert a path record keyed by (file_system, path)."""

    @abstractmethod
    def get_file_info(self, file_system: str, path: str) -> FileInfo | None:
        """Return content identity of an existing record, if any."""

    @abstractmethod
    def ensure_index_table(self, table: str) -> None:
        """Create the (key, set<string>) index table if it does not exist."""

    @abstractmethod
    def union_update(self, table: str, key: str, values: Iterable[str]) -> None:
        """Add values to the set stored under key. Never removes members."""

    @abstractmethod
    def get_index(self, table: str, key: str) -> set[str]:
        """Return the set stored under key (empty when absent)."""

    @abstractmethod
    def ping(self) -> None:
        """Raise if the backend is unreachable."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying connection."""
