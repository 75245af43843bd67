# src/pathmigrate/progress/layout.py - v1
"""Working directory structure shared by scan and migrate.

    {work_dir}/todo/shard-00000     pending shard files
    {work_dir}/processed/...        shards fully consumed
    {work_dir}/failed_paths         <path>\\t<reason> per failed entry
    {work_dir}/scan_final           scan completion marker
    {work_dir}/ga_cache_dump        scanned store names, one per line
    {work_dir}/migrate_progress     ProgressState as JSON
"""

from __future__ import annotations

from pathlib import Path

TODO_DIR = "todo"
PROCESSED_DIR = "processed"
FAILED_PATHS_FILE = "failed_paths"
STATUS_FILE = "scan_final"
GA_CACHE_DUMP = "ga_cache_dump"
PROGRESS_FILE = "migrate_progress"

SHARD_PREFIX = "shard-"


def todo_dir(work_dir: Path) -> Path:
    return work_dir / TODO_DIR


def processed_dir(work_dir: Path) -> Path:
    return work_dir / PROCESSED_DIR


def failed_paths_file(work_dir: Path) -> Path:
    return work_dir / FAILED_PATHS_FILE


def status_file(work_dir: Path) -> Path:
    return work_dir / STATUS_FILE


def ga_cache_dump_file(work_dir: Path) -> Path:
    return work_dir / GA_CACHE_DUMP


def progress_file(work_dir: Path) -> Path:
    return work_dir / PROGRESS_FILE


def shard_name(index: int, prefix: str = SHARD_PREFIX) -> str:
    """Return the file name for shard ``index`` (zero padded for sorting)."""
    return f"{prefix}{index:05d}"


def is_shard_file(path: Path) -> bool:
    """Working files are regular, non-hidden files inside todo/processed."""
    return path.is_file() and not path.name.startswith(".")
