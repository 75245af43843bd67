# src/pathmigrate/batch/coordinator.py - v1
"""Migration coordinator: worker pool lifecycle and final GA flush.

The coordinator runs one MigrationWorker per pending todo shard on a fixed
thread pool. Workers share nothing but the path store and the GA indexer,
whose writes are upserts and set unions. After every shard has reached a
terminal state the coordinator flushes the reserved scanned-stores key,
dumps the scanned set, updates the progress state and closes the store.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from pathmigrate.batch.models import MigrationResult, ShardResult, WorkerState
from pathmigrate.batch.worker import MigrationContext, MigrationWorker
from pathmigrate.config.settings import ConfigurationError, Settings, validate_storage_root
from pathmigrate.core.checksum import ChecksumEngine
from pathmigrate.core.paths import PathDeriver
from pathmigrate.index.ga_indexer import GaIndexer, GaIndexPolicy
from pathmigrate.progress import layout
from pathmigrate.progress.store import ProgressStore

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """Raised when shards or the final flush fail. Carries the partial result."""

    def __init__(self, message: str, result: MigrationResult | None = None) -> None:
        super().__init__(message)
        self.result = result


class MigrationCoordinator:
    """Run every pending shard and finalize the run."""

    def __init__(self, context: MigrationContext, threads: int = 1) -> None:
        self._ctx = context
        self._threads = max(1, threads)
        self._closed = False

    @property
    def context(self) -> MigrationContext:
        return self._ctx

    def run(self) -> MigrationResult:
        """Migrate all pending shards, then shut down.

        Raises:
            MigrationError: If any shard failed or the final flush failed.
                Every shard is attempted before this is raised.
            KeyboardInterrupt: Re-raised after the running shards finish and
                the shutdown flush has run. Queued shards stay pending.
        """
        t0 = time.perf_counter()
        shards = self._ctx.progress.pending_shards()
        logger.info("Migrating %d shards with %d threads", len(shards), self._threads)

        try:
            results = self._run_workers(shards)
        except KeyboardInterrupt:
            logger.warning("Interrupted, flushing before exit")
            self.shutdown()
            raise
        result = MigrationResult(shards=sorted(results, key=lambda r: r.shard))

        try:
            result.scanned_stores = sorted(self.shutdown())
        except Exception as e:
            result.duration_seconds = round(time.perf_counter() - t0, 2)
            raise MigrationError(f"Final flush failed: {e}", result) from e

        result.completed = not self._ctx.progress.pending_shards()
        result.duration_seconds = round(time.perf_counter() - t0, 2)

        failed = result.failed_shards
        if failed:
            names = ", ".join(s.shard for s in failed)
            raise MigrationError(f"{len(failed)} shard(s) failed: {names}", result)
        return result

    def _run_workers(self, shards: list[Path]) -> list[ShardResult]:
        if not shards:
            return []
        results: list[ShardResult] = []
        executor = ThreadPoolExecutor(
            max_workers=min(self._threads, len(shards)),
            thread_name_prefix="migrate",
        )
        futures = {
            executor.submit(MigrationWorker(shard, self._ctx).run): shard
            for shard in shards
        }
        try:
            for future in as_completed(futures):
                shard = futures[future]
                try:
                    results.append(future.result())
                except Exception as e:
                    logger.exception("Worker for shard %s crashed", shard.name)
                    results.append(
                        ShardResult(shard=shard.name, state=WorkerState.FAILED, error=str(e))
                    )
        except KeyboardInterrupt:
            # Running shards finish, queued shards stay in todo/
            executor.shutdown(wait=True, cancel_futures=True)
            cancelled = sum(1 for f in futures if f.cancelled())
            logger.warning("Cancelled %d queued shards", cancelled)
            raise
        finally:
            executor.shutdown(wait=True)
        return results

    def shutdown(self) -> set[str]:
        """Flush the reserved GA key, dump it, mark progress, close the store."""
        if self._closed:
            return set()
        progress = self._ctx.progress
        scanned: set[str] = set()
        try:
            if self._ctx.ga_indexer is not None:
                scanned = self._ctx.ga_indexer.flush_scanned()
                self._ctx.ga_indexer.dump_scanned(layout.ga_cache_dump_file(progress.work_dir))

            if progress.pending_shards():
                state = progress.load_state()
                if state is not None:
                    progress.save_state(state)
            else:
                progress.mark_completed()
                logger.info("All shards processed, migration completed")
        finally:
            self._closed = True
            self._ctx.store.close()
        return scanned


def build_coordinator(settings: Settings) -> MigrationCoordinator:
    """Validate the migrate configuration and wire a coordinator.

    Raises:
        ConfigurationError: On a bad storage root, a missing scan marker or
            todo shards, or an unreachable target store. Nothing has been
            migrated when this is raised.
    """
    from pathmigrate.store.store_factory import create_path_store

    validate_storage_root(settings)

    progress = ProgressStore(settings.work_dir)
    if not progress.todo_dir.is_dir():
        raise ConfigurationError(
            f"todo folder {progress.todo_dir} does not exist. "
            "Make sure you have used 'scan' command to generate the path files."
        )
    if not progress.is_scan_final():
        raise ConfigurationError(
            f"Scan of {settings.work_dir} did not complete, run 'scan' again"
        )
    if not progress.pending_shards():
        raise ConfigurationError(
            "There are no path entries to migrate, use 'scan' command first to generate them"
        )

    checksum = ChecksumEngine(settings.dedup_algorithm) if settings.dedup_enabled else None

    try:
        store = create_path_store(settings)
    except Exception as e:
        raise ConfigurationError(f"Can not open target store: {e}") from e
    try:
        store.ping()
    except Exception as e:
        store.close()
        raise ConfigurationError(f"Target store validation failed: {e}") from e

    ga_indexer = None
    if settings.ga_index_enabled:
        ga_indexer = GaIndexer(
            store,
            settings.ga_index_table,
            GaIndexPolicy(
                filesystem_prefix=settings.ga_filesystem_prefix,
                path_suffix=settings.ga_path_suffix,
                store_pattern=settings.ga_store_pattern,
            ),
        )

    context = MigrationContext(
        deriver=PathDeriver(settings.storage_root.expanduser()),
        store=store,
        progress=progress,
        checksum=checksum,
        ga_indexer=ga_indexer,
    )
    return MigrationCoordinator(context, threads=settings.threads)


class CoordinatorHandle:
    """Once-initialized coordinator owned by the process entry point.

    Concurrent get_or_create() calls construct a single coordinator; later
    callers receive the instance already built. release() drops it so that
    a new run can build a fresh one.
    """

    def __init__(self, factory: Callable[[], MigrationCoordinator]) -> None:
        self._factory = factory
        self._lock = threading.Lock()
        self._coordinator: MigrationCoordinator | None = None

    def get_or_create(self) -> MigrationCoordinator:
        with self._lock:
            if self._coordinator is None:
                self._coordinator = self._factory()
            return self._coordinator

    @property
    def current(self) -> MigrationCoordinator | None:
        return self._coordinator

    def release(self) -> None:
        with self._lock:
            self._coordinator = None
