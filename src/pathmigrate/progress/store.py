# src/pathmigrate/progress/store.py - v1
"""File-backed progress bookkeeping for scan and migrate.

A shard is pending while its file sits in todo/ and done once it has been
renamed into processed/. The rename is a single os.replace, so a crash
leaves every shard on exactly one side. A shard interrupted mid-way stays
in todo/ and is replayed in full on the next run, which is safe because
every downstream write is an upsert or a set union.
"""

from __future__ import annotations

import logging
import os
import shutil
import threading
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from pathmigrate.progress import layout
from pathmigrate.progress.models import FailedPath, ProgressState, ScanSummary

logger = logging.getLogger(__name__)


class ShardError(Exception):
    """Raised when a shard file cannot be read, written or moved."""


class ProgressStore:
    """Owns the working directory of one migration run."""

    def __init__(self, work_dir: Path | str) -> None:
        self._work_dir = Path(work_dir).expanduser()
        self._failure_lock = threading.Lock()
        self._state_lock = threading.Lock()

    @property
    def work_dir(self) -> Path:
        return self._work_dir

    @property
    def todo_dir(self) -> Path:
        return layout.todo_dir(self._work_dir)

    @property
    def processed_dir(self) -> Path:
        return layout.processed_dir(self._work_dir)

    # --- Scan side ---

    def prepare(self) -> None:
        """Clean the working directory before a fresh scan."""
        for directory in (self.todo_dir, self.processed_dir):
            if directory.exists():
                logger.info("%s folder is not empty, will clean it first", directory.name)
                shutil.rmtree(directory)
            directory.mkdir(parents=True)

        for stale in (
            layout.failed_paths_file(self._work_dir),
            layout.status_file(self._work_dir),
            layout.progress_file(self._work_dir),
            layout.ga_cache_dump_file(self._work_dir),
        ):
            stale.unlink(missing_ok=True)

    def write_shard(self, name: str, paths: Iterable[str]) -> Path:
        """Write one todo shard, newline-delimited."""
        target = self.todo_dir / name
        tmp = target.with_name(f".{name}.tmp")
        try:
            self.todo_dir.mkdir(parents=True, exist_ok=True)
            with tmp.open("w", encoding="utf-8") as fh:
                for p in paths:
                    fh.write(f"{p}\n")
            os.replace(tmp, target)
        except OSError as e:
            raise ShardError(f"Can not write shard {target}: {e}") from e
        return target

    def mark_scan_final(self, summary: ScanSummary) -> None:
        """Write the scan completion marker and a fresh progress state."""
        layout.status_file(self._work_dir).write_text(
            summary.model_dump_json(indent=2), encoding="utf-8"
        )
        now = datetime.now(timezone.utc)
        self.save_state(ProgressState(created_at=now, updated_at=now))

    def is_scan_final(self) -> bool:
        return layout.status_file(self._work_dir).is_file()

    def read_scan_summary(self) -> ScanSummary | None:
        status = layout.status_file(self._work_dir)
        if not status.is_file():
            return None
        text = status.read_text(encoding="utf-8").strip()
        if not text:
            return None
        return ScanSummary.model_validate_json(text)

    # --- Shards ---

    def pending_shards(self) -> list[Path]:
        return self._list_shards(self.todo_dir)

    def processed_shards(self) -> list[Path]:
        return self._list_shards(self.processed_dir)

    @staticmethod
    def _list_shards(directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if layout.is_shard_file(p))

    def read_shard(self, shard: Path) -> list[str]:
        """Return the non-blank lines of a shard file."""
        try:
            text = shard.read_text(encoding="utf-8")
        except OSError as e:
            raise ShardError(f"Can not read shard {shard}: {e}") from e
        return [line.strip() for line in text.splitlines() if line.strip()]

    def complete_shard(self, shard: Path) -> Path:
        """Atomically move a consumed shard from todo/ to processed/."""
        target = self.processed_dir / shard.name
        try:
            self.processed_dir.mkdir(parents=True, exist_ok=True)
            os.replace(shard, target)
        except OSError as e:
            raise ShardError(f"Can not move shard {shard} to processed: {e}") from e
        logger.debug("Shard %s moved to %s", shard.name, target)
        return target

    # --- Failures ---

    def record_failure(self, path: str, reason: str) -> None:
        """Append one ``<path>\\t<reason>`` line to failed_paths."""
        reason = " ".join(str(reason).split())
        with self._failure_lock:
            with layout.failed_paths_file(self._work_dir).open("a", encoding="utf-8") as fh:
                fh.write(f"{path}\t{reason}\n")

    def failed_entries(self) -> list[FailedPath]:
        failed = layout.failed_paths_file(self._work_dir)
        if not failed.is_file():
            return []
        entries: list[FailedPath] = []
        for line in failed.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            path, _, reason = line.partition("\t")
            entries.append(FailedPath(path=path, reason=reason))
        return entries

    def requeue_failed(self, batch_size: int) -> list[Path]:
        """Turn the failed_paths log into new todo shards for a targeted rerun.

        The log is archived as ``failed_paths.<timestamp>`` so that the
        rerun starts with an empty one.
        """
        paths = list(dict.fromkeys(e.path for e in self.failed_entries()))
        if not paths:
            return []

        next_index = self._next_shard_index()
        written: list[Path] = []
        for offset in range(0, len(paths), batch_size):
            name = layout.shard_name(next_index + len(written))
            written.append(self.write_shard(name, paths[offset:offset + batch_size]))

        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        failed = layout.failed_paths_file(self._work_dir)
        os.replace(failed, failed.with_name(f"{failed.name}.{stamp}"))

        state = self.load_state()
        if state is not None and state.status == "completed":
            state.status = "in_progress"
            state.completed_at = None
            self.save_state(state)

        logger.info("Requeued %d failed paths into %d shards", len(paths), len(written))
        return written

    def _next_shard_index(self) -> int:
        indexes = [-1]
        for shard in self.pending_shards() + self.processed_shards():
            suffix = shard.name[len(layout.SHARD_PREFIX):]
            if shard.name.startswith(layout.SHARD_PREFIX) and suffix.isdigit():
                indexes.append(int(suffix))
        return max(indexes) + 1

    # --- State ---

    def load_state(self) -> ProgressState | None:
        progress = layout.progress_file(self._work_dir)
        if not progress.is_file():
            return None
        return ProgressState.model_validate_json(progress.read_text(encoding="utf-8"))

    def save_state(self, state: ProgressState) -> None:
        """Refresh shard lists from disk and write the state atomically."""
        with self._state_lock:
            state.todo = [p.name for p in self.pending_shards()]
            state.processed = [p.name for p in self.processed_shards()]
            state.failed_paths = len(self.failed_entries())
            state.updated_at = datetime.now(timezone.utc)

            progress = layout.progress_file(self._work_dir)
            progress.parent.mkdir(parents=True, exist_ok=True)
            tmp = progress.with_name(f".{progress.name}.tmp")
            tmp.write_text(state.model_dump_json(indent=2), encoding="utf-8")
            os.replace(tmp, progress)

    def mark_completed(self) -> ProgressState:
        """Set the terminal status flag."""
        now = datetime.now(timezone.utc)
        state = self.load_state() or ProgressState(created_at=now)
        state.status = "completed"
        state.completed_at = now
        self.save_state(state)
        return state
