# src/pathmigrate/batch/worker.py - v1
"""Per-shard migration loop.

    IDLE -> READING -> PROCESSING (per entry) -> ADVANCING -> COMPLETED
                  \\________________________________________-> FAILED

Entry-level problems are written to failed_paths and the loop moves on.
Only shard-level problems (the todo file cannot be read or moved) end in
FAILED, and they leave the todo file in place for the next run.
"""

from __future__ import annotations

import logging
import os
import threading
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from pathmigrate.batch.models import FileEntry, ShardResult, WorkerState
from pathmigrate.core.checksum import ChecksumEngine
from pathmigrate.core.paths import PathDeriver
from pathmigrate.index.ga_indexer import GaIndexer
from pathmigrate.logging.context import set_shard_context
from pathmigrate.progress.store import ProgressStore, ShardError
from pathmigrate.store.base_path_store import BasePathStore
from pathmigrate.store.models import PathRecord

logger = logging.getLogger(__name__)


class EntryError(Exception):
    """Raised for a single todo entry that cannot be migrated."""


@dataclass
class MigrationContext:
    """Collaborators shared by every worker of a run."""

    deriver: PathDeriver
    store: BasePathStore
    progress: ProgressStore
    checksum: ChecksumEngine | None = None
    ga_indexer: GaIndexer | None = None


class MigrationWorker:
    """Consume one todo shard."""

    def __init__(self, shard: Path, context: MigrationContext) -> None:
        self._shard = shard
        self._ctx = context
        self.state = WorkerState.IDLE

    @property
    def shard(self) -> Path:
        return self._shard

    def run(self) -> ShardResult:
        set_shard_context(self._shard.name, worker=threading.current_thread().name)
        t0 = time.perf_counter()
        result = ShardResult(shard=self._shard.name, state=self.state)

        try:
            self.state = WorkerState.READING
            entries = self._ctx.progress.read_shard(self._shard)
            result.total = len(entries)
            logger.info("Start shard %s: %d entries", self._shard.name, len(entries))

            for physical_path in entries:
                self.state = WorkerState.PROCESSING
                try:
                    if self._migrate(physical_path):
                        result.indexed += 1
                    result.migrated += 1
                except Exception as e:
                    result.failed += 1
                    logger.warning("Failed to migrate %s: %s", physical_path, e)
                    self._ctx.progress.record_failure(physical_path, str(e))

            self.state = WorkerState.ADVANCING
            self._ctx.progress.complete_shard(self._shard)
            self.state = WorkerState.COMPLETED
        except ShardError as e:
            self.state = WorkerState.FAILED
            result.error = str(e)
            logger.error("Shard %s aborted: %s", self._shard.name, e)

        result.state = self.state
        result.duration_seconds = round(time.perf_counter() - t0, 2)
        logger.info(
            "Shard %s %s: %d migrated, %d failed, %d indexed in %.1fs",
            result.shard, result.state.value, result.migrated, result.failed,
            result.indexed, result.duration_seconds,
        )
        return result

    def build_entry(self, physical_path: str) -> FileEntry:
        """Validate the file and derive everything needed for the insert."""
        path = Path(os.path.normpath(physical_path))
        if not path.is_file():
            raise EntryError(
                f"the physical path {physical_path} does not exist or is not a real file"
            )

        checksum = None
        if self._ctx.checksum is not None:
            checksum = self._ctx.checksum.digest(path)

        derived = self._ctx.deriver.derive(path)
        stat = path.stat()
        return FileEntry(
            physical_path=str(path),
            file_system=derived.file_system,
            path=derived.path,
            store_path=derived.store_path,
            size_bytes=stat.st_size,
            last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            checksum=checksum,
        )

    def _migrate(self, physical_path: str) -> bool:
        """Migrate one entry. Returns True when the GA index was updated."""
        entry = self.build_entry(physical_path)

        existing = self._ctx.store.get_file_info(entry.file_system, entry.path)
        file_id = existing.file_id if existing is not None else uuid.uuid4().hex

        self._ctx.store.insert(
            PathRecord(
                file_system=entry.file_system,
                path=entry.path,
                creation=entry.last_modified,
                file_id=file_id,
                size=entry.size_bytes,
                file_storage=entry.store_path,
                checksum=entry.checksum,
            )
        )

        if self._ctx.ga_indexer is None:
            return False
        return self._ctx.ga_indexer.index(entry.file_system, entry.path) is not None
