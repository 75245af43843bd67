# src/pathmigrate/batch/scanner.py - v1
"""Directory scanner: file discovery and todo shard generation.

Walks the storage root, drops paths matching the exclusion regex, and hands
the result to the partitioner which writes one todo file per shard.
"""

from __future__ import annotations

import logging
import os
import re
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from pathmigrate.batch.models import ScanResult
from pathmigrate.batch.partitioner import partition, shard_count_for, write_shards
from pathmigrate.progress.models import ScanSummary

if TYPE_CHECKING:
    from pathmigrate.config.settings import Settings
    from pathmigrate.progress.store import ProgressStore

logger = logging.getLogger(__name__)


class ScanError(ValueError):
    """Raised when the storage root cannot be scanned."""


class DirectoryScanner:
    """Discover every eligible regular file under a storage root.

    Top-level children of the root (package types) are walked in parallel
    and merged back in sorted order, so the output order does not depend on
    thread scheduling.
    """

    def __init__(self, exclude_pattern: str | None = None, threads: int = 1) -> None:
        try:
            self._exclude = re.compile(exclude_pattern) if exclude_pattern else None
        except re.error as e:
            raise ScanError(f"Invalid filter pattern {exclude_pattern!r}: {e}") from e
        self._threads = max(1, threads)

    def scan(self, scan_root: Path | str) -> list[str]:
        """Return absolute, normalized paths of all eligible files.

        Raises:
            ScanError: If scan_root is missing or not a directory.
        """
        root = Path(os.path.normpath(os.path.abspath(Path(scan_root).expanduser())))
        if not root.is_dir():
            raise ScanError(f"Scan root is not a directory: {scan_root}")

        children = sorted(root.iterdir())
        files = [c for c in children if c.is_file()]
        dirs = [c for c in children if c.is_dir()]

        if self._threads > 1 and len(dirs) > 1:
            with ThreadPoolExecutor(
                max_workers=self._threads, thread_name_prefix="scan"
            ) as executor:
                walked = list(executor.map(self._walk, dirs))
        else:
            walked = [self._walk(d) for d in dirs]

        results: list[str] = [str(f) for f in files if not self._excluded(f)]
        for chunk in walked:
            results.extend(chunk)
        paths = list(dict.fromkeys(results))

        logger.info(
            "Scanned %s: found %d files (filter=%s)",
            root, len(paths), self._exclude.pattern if self._exclude else None,
        )
        return paths

    def _walk(self, directory: Path) -> list[str]:
        found: list[str] = []
        for path in sorted(directory.rglob("*")):
            if not path.is_file():
                continue
            if self._excluded(path):
                logger.debug("Excluded %s", path)
                continue
            found.append(str(path))
        logger.debug("Walked %s: %d files", directory, len(found))
        return found

    def _excluded(self, path: Path) -> bool:
        return self._exclude is not None and self._exclude.search(path.as_posix()) is not None

    def scan_to_shards(
        self,
        scan_root: Path | str,
        progress: ProgressStore,
        batch_size: int,
    ) -> ScanResult:
        """Full scan pipeline: clean work dir, scan, partition, write todo files.

        The scan_final marker is written last, so a crashed scan never
        passes the migrate validation.
        """
        t0 = time.perf_counter()
        paths = self.scan(scan_root)

        progress.prepare()
        shard_count = shard_count_for(len(paths), batch_size, self._threads)
        written = write_shards(partition(paths, shard_count), progress) if paths else []

        progress.mark_scan_final(
            ScanSummary(
                storage_root=str(scan_root),
                total_paths=len(paths),
                shard_count=len(written),
                batch_size=batch_size,
                scan_filter=self._exclude.pattern if self._exclude else "",
                completed_at=datetime.now(timezone.utc),
            )
        )

        return ScanResult(
            storage_root=str(scan_root),
            total_paths=len(paths),
            shard_count=len(written),
            shard_files=[p.name for p in written],
            duration_seconds=round(time.perf_counter() - t0, 2),
        )


def run_scan(settings: Settings, progress: ProgressStore) -> ScanResult:
    """Convenience: scan the configured storage root into todo shards."""
    scanner = DirectoryScanner(
        exclude_pattern=settings.scan_filter or None,
        threads=settings.threads,
    )
    return scanner.scan_to_shards(
        settings.storage_root.expanduser(), progress, settings.batch_size,
    )
