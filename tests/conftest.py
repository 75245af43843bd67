# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Builds a small artifact storage tree, a working dir and a sqlite path store
under tmp_path. No external services.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from pathmigrate.config.settings import Settings
from pathmigrate.core.paths import PathDeriver
from pathmigrate.progress.store import ProgressStore
from pathmigrate.store.sqlite_store import SqlitePathStore


# === Helpers ===


STORAGE_FILES: dict[str, bytes] = {
    "maven/hosted-build-42/org/foo/bar/1.0/bar-1.0.pom": b"<project>bar</project>",
    "maven/hosted-build-42/org/foo/bar/1.0/bar-1.0.jar": b"PK\x03\x04bar",
    "maven/hosted-build-7/org/foo/baz/2.1/baz-2.1.pom": b"<project>baz</project>",
    "maven/hosted-shared/org/foo/qux/3.0/qux-3.0.pom": b"<project>qux</project>",
    "maven/remote-central/org/apache/commons/1.0/commons-1.0.pom": b"<project/>",
    "npm/hosted-build-9/lodash/-/lodash-4.17.21.tgz": b"tgz",
}


def make_storage(root: Path, files: dict[str, bytes] | None = None) -> Path:
    """Create an artifact storage tree under root."""
    for rel, content in (files or STORAGE_FILES).items():
        p = root / rel
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(content)
    return root


# === FIXTURES ===


@pytest.fixture
def storage_root(tmp_path: Path) -> Path:
    """Populated artifact storage root."""
    return make_storage(tmp_path / "storage")


@pytest.fixture
def work_dir(tmp_path: Path) -> Path:
    """Empty migration working dir."""
    wd = tmp_path / "work"
    wd.mkdir()
    return wd


@pytest.fixture
def progress(work_dir: Path) -> ProgressStore:
    store = ProgressStore(work_dir)
    store.prepare()
    return store


@pytest.fixture
def path_store(tmp_path: Path):
    store = SqlitePathStore(db_path=tmp_path / "pathmap.db")
    yield store
    store.close()


@pytest.fixture
def pathmap_row(tmp_path: Path):
    """Read one pathmap row of the sqlite store: pathmap_row(fs, path) -> dict."""

    def read(file_system: str, path: str) -> dict | None:
        conn = sqlite3.connect(str(tmp_path / "pathmap.db"))
        conn.row_factory = sqlite3.Row
        try:
            row = conn.execute(
                "SELECT * FROM pathmap WHERE file_system = ? AND path = ?",
                (file_system, path),
            ).fetchone()
        finally:
            conn.close()
        return dict(row) if row is not None else None

    return read


@pytest.fixture
def deriver(storage_root: Path) -> PathDeriver:
    return PathDeriver(storage_root)


@pytest.fixture
def settings(storage_root: Path, work_dir: Path, tmp_path: Path) -> Settings:
    """Settings pointing at the tmp storage, work dir and sqlite file."""
    return Settings(
        _env_file=None,
        storage_root=storage_root,
        work_dir=work_dir,
        store_sqlite_path=tmp_path / "pathmap.db",
    )


@pytest.fixture
def storage_files() -> dict[str, bytes]:
    """Relative path -> content of the files in storage_root."""
    return dict(STORAGE_FILES)


@pytest.fixture
def add_files():
    """Add files to a storage tree: add_files(root, {rel: bytes})."""
    return make_storage
