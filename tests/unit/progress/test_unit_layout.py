# tests/unit/progress/test_unit_layout.py - v1
"""Tests for progress/layout.py."""

from __future__ import annotations

from pathlib import Path

from pathmigrate.progress import layout


class TestLayout:
    def test_paths(self):
        wd = Path("/work")
        assert layout.todo_dir(wd) == Path("/work/todo")
        assert layout.processed_dir(wd) == Path("/work/processed")
        assert layout.failed_paths_file(wd) == Path("/work/failed_paths")
        assert layout.status_file(wd) == Path("/work/scan_final")
        assert layout.ga_cache_dump_file(wd) == Path("/work/ga_cache_dump")
        assert layout.progress_file(wd) == Path("/work/migrate_progress")

    def test_shard_names_sort_numerically(self):
        names = [layout.shard_name(i) for i in (10, 2, 100)]
        assert sorted(names) == ["shard-00002", "shard-00010", "shard-00100"]

    def test_is_shard_file(self, tmp_path: Path):
        (tmp_path / "shard-00000").write_text("")
        (tmp_path / ".hidden").write_text("")
        (tmp_path / "dir").mkdir()
        assert layout.is_shard_file(tmp_path / "shard-00000")
        assert not layout.is_shard_file(tmp_path / ".hidden")
        assert not layout.is_shard_file(tmp_path / "dir")
