# src/pathmigrate/logging/handlers.py - v1
"""Rotating log file for long migrations.

A relative LOG_FILE lands in the migration working dir, next to the todo and
processed shards of the run it describes.
"""

from __future__ import annotations

import re
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE = re.compile(r"^(\d+)\s*(B|K|KB|M|MB|G|GB)?$", re.IGNORECASE)
_MULTIPLIERS = {"B": 1, "K": 1024, "M": 1024**2, "G": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse '10MB', '512k' or a bare byte count into bytes."""
    match = _SIZE.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    value = int(match.group(1))
    if value < 1:
        raise ValueError(f"Invalid size format: {size_str!r}. Size must be positive.")
    unit = (match.group(2) or "B").upper()[0]
    return value * _MULTIPLIERS[unit]


def resolve_log_file(log_file: Path | str, work_dir: Path | str | None = None) -> Path:
    path = Path(log_file).expanduser()
    if work_dir is not None and not path.is_absolute():
        path = Path(work_dir).expanduser() / path
    return path


def create_rotating_handler(
    log_file: Path | str,
    rotation: str = "10MB",
    retention: int = 30,
    work_dir: Path | str | None = None,
) -> RotatingFileHandler:
    """Create the rotating file handler for a run.

    Args:
        log_file: Log file, relative paths resolved against work_dir.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.
        work_dir: Migration working dir.
    """
    path = resolve_log_file(log_file, work_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
        delay=True,
    )
