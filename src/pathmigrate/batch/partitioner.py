# src/pathmigrate/batch/partitioner.py - v1
"""Positional modulo partitioning of scanned paths into todo shards.

Path i goes to shard i mod N and keeps its relative order inside the shard.
Shard contents therefore depend on scan order; a resumed run works from the
shard files already on disk, never from a rescanned list.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from pathmigrate.progress import layout

if TYPE_CHECKING:
    from pathmigrate.progress.store import ProgressStore

logger = logging.getLogger(__name__)


def shard_count_for(total: int, batch_size: int, threads: int = 1) -> int:
    """Number of shards: one per thread at least, each at most batch_size long.

    Never more shards than paths, never fewer than one.
    """
    if batch_size < 1 or threads < 1:
        raise ValueError("batch_size and threads must be >= 1")
    wanted = max(threads, math.ceil(total / batch_size))
    return max(1, min(wanted, total))


def partition(paths: Sequence[str], shard_count: int) -> list[list[str]]:
    """Split paths into shard_count disjoint, order-preserving shards."""
    if shard_count < 1:
        raise ValueError("shard_count must be >= 1")
    shards: list[list[str]] = [[] for _ in range(shard_count)]
    for i, path in enumerate(paths):
        shards[i % shard_count].append(path)
    return shards


def write_shards(shards: Sequence[Sequence[str]], progress: ProgressStore) -> list[Path]:
    """Write one todo file per non-empty shard. Returns the files written."""
    written: list[Path] = []
    for index, shard in enumerate(shards):
        if not shard:
            continue
        written.append(progress.write_shard(layout.shard_name(index), shard))
    logger.info("Wrote %d todo shards to %s", len(written), progress.todo_dir)
    return written
