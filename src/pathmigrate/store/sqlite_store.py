# src/pathmigrate/store/sqlite_store.py - v1
"""SQLite-based path store (STORE_BACKEND=sqlite).

Uses stdlib sqlite3, one connection shared by all workers behind a lock.
The set<string> index is stored as one row per (key, member) so that the
union is a plain INSERT OR IGNORE.
"""

from __future__ import annotations

import logging
import re
import sqlite3
import threading
from collections.abc import Iterable
from pathlib import Path

from pathmigrate.store.base_path_store import BasePathStore
from pathmigrate.store.models import FileInfo, PathRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pathmap (
    file_system TEXT NOT NULL,
    path TEXT NOT NULL,
    parent_path TEXT NOT NULL,
    filename TEXT NOT NULL,
    file_id TEXT NOT NULL,
    size INTEGER NOT NULL,
    file_storage TEXT NOT NULL,
    checksum TEXT,
    creation TEXT NOT NULL,
    PRIMARY KEY (file_system, path)
);
CREATE INDEX IF NOT EXISTS idx_pathmap_checksum ON pathmap(checksum);
"""

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def sqlite_table_name(table: str) -> str:
    """Map ``keyspace.table`` style names to a single sqlite identifier."""
    name = table.replace(".", "_")
    if not _TABLE_NAME.match(name):
        raise ValueError(f"Invalid index table name: {table!r}")
    return name


class SqlitePathStore(BasePathStore):
    """SQLite-backed path map plus GA index tables."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self._tables: set[str] = set()

    def insert(self, record: PathRecord) -> None:
        with self._lock:
            self._conn.execute(
                """INSERT INTO pathmap
                   (file_system, path, parent_path, filename, file_id, size,
                    file_storage, checksum, creation)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT(file_system, path) DO UPDATE SET
                     parent_path = excluded.parent_path,
                     filename = excluded.filename,
                     file_id = excluded.file_id,
                     size = excluded.size,
                     file_storage = excluded.file_storage,
                     checksum = excluded.checksum,
                     creation = excluded.creation""",
                (
                    record.file_system,
                    record.path,
                    record.parent_path,
                    record.filename,
                    record.file_id,
                    record.size,
                    record.file_storage,
                    record.checksum,
                    record.creation.isoformat(),
                ),
            )
            self._conn.commit()

    def get_file_info(self, file_system: str, path: str) -> FileInfo | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT file_id, file_storage FROM pathmap"
                " WHERE file_system = ? AND path = ?",
                (file_system, path),
            ).fetchone()
        if row is None:
            return None
        return FileInfo(file_id=row[0], file_storage=row[1])

    def count_records(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM pathmap").fetchone()[0]

    def ensure_index_table(self, table: str) -> None:
        name = sqlite_table_name(table)
        with self._lock:
            if name in self._tables:
                return
            self._conn.execute(
                f"""CREATE TABLE IF NOT EXISTS {name} (
                    ga TEXT NOT NULL,
                    store TEXT NOT NULL,
                    PRIMARY KEY (ga, store)
                )"""
            )
            self._conn.commit()
            self._tables.add(name)
        logger.debug("Index table %s ready", name)

    def union_update(self, table: str, key: str, values: Iterable[str]) -> None:
        members = sorted(set(values))
        if not members:
            return
        name = sqlite_table_name(table)
        with self._lock:
            self._conn.executemany(
                f"INSERT OR IGNORE INTO {name} (ga, store) VALUES (?, ?)",
                [(key, m) for m in members],
            )
            self._conn.commit()

    def get_index(self, table: str, key: str) -> set[str]:
        name = sqlite_table_name(table)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT store FROM {name} WHERE ga = ?", (key,)
            ).fetchall()
        return {r[0] for r in rows}

    def ping(self) -> None:
        with self._lock:
            self._conn.execute("SELECT 1").fetchone()

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()
