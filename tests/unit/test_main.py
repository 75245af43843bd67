# tests/unit/test_main.py - v1
"""Tests for main.py - CLI entry point."""

from __future__ import annotations

from pathlib import Path

import pytest

from pathmigrate.main import _build_parser, _overrides, main
from pathmigrate.progress.store import ProgressStore


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------

class TestBuildParser:
    def test_version_flag(self):
        parser = _build_parser()
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_scan_subcommand(self):
        args = _build_parser().parse_args(
            ["scan", "-b", "/data", "-w", "/work", "-f", r"\.sha1$", "-B", "50", "-t", "4"]
        )
        assert args.command == "scan"
        assert args.storage_root == Path("/data")
        assert args.work_dir == Path("/work")
        assert args.scan_filter == r"\.sha1$"
        assert args.batch_size == 50
        assert args.threads == 4

    def test_migrate_subcommand(self):
        args = _build_parser().parse_args(
            ["migrate", "-b", "/data", "-d", "-A", "SHA-256", "--no-index-ga", "-c", "ks.ga"]
        )
        assert args.command == "migrate"
        assert args.dedup_enabled is True
        assert args.dedup_algorithm == "SHA-256"
        assert args.ga_index_enabled is False
        assert args.ga_index_table == "ks.ga"

    def test_migrate_defaults_are_unset(self):
        args = _build_parser().parse_args(["migrate"])
        assert args.dedup_enabled is None
        assert args.ga_index_enabled is None
        assert args.store_backend is None


class TestOverrides:
    def test_only_given_flags(self):
        args = _build_parser().parse_args(["scan", "-B", "10"])
        assert _overrides(args) == {"batch_size": 10}

    def test_verbose_sets_debug(self):
        args = _build_parser().parse_args(["-v", "status", "-w", "/work"])
        assert _overrides(args) == {"work_dir": Path("/work"), "log_level": "DEBUG"}


# ---------------------------------------------------------------------------
# Command tests
# ---------------------------------------------------------------------------

class TestMain:
    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_invalid_config(self, work_dir):
        assert main(["scan", "-w", str(work_dir), "-t", "0"]) == 1

    def test_invalid_storage_root(self, tmp_path, work_dir):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main(["scan", "-b", str(empty), "-w", str(work_dir)]) == 1

    def test_scan_then_migrate(self, storage_root, work_dir, tmp_path, capsys):
        db = tmp_path / "cli.db"

        assert main(["scan", "-b", str(storage_root), "-w", str(work_dir), "-t", "2"]) == 0
        assert "Paths found:  6" in capsys.readouterr().out
        assert len(ProgressStore(work_dir).pending_shards()) == 2

        code = main([
            "migrate", "-b", str(storage_root), "-w", str(work_dir),
            "--sqlite-path", str(db), "-t", "2",
        ])
        assert code == 0
        out = capsys.readouterr().out
        assert "Migrated:     6" in out
        assert "Completed:    True" in out

        assert main(["status", "-w", str(work_dir), "--sqlite-path", str(db)]) == 0
        out = capsys.readouterr().out
        assert "Records:      6" in out
        assert "Todo:         0" in out
        assert "Processed:    2" in out
        assert "Status:       completed" in out

    def test_migrate_without_scan(self, storage_root, work_dir, tmp_path):
        code = main([
            "migrate", "-b", str(storage_root), "-w", str(work_dir),
            "--sqlite-path", str(tmp_path / "cli.db"),
        ])
        assert code == 1

    def test_status_missing_dir(self, tmp_path):
        assert main(["status", "-w", str(tmp_path / "nope")]) == 1

    def test_status_without_store(self, work_dir, tmp_path, capsys):
        ProgressStore(work_dir).prepare()
        assert main(["status", "-w", str(work_dir), "--sqlite-path", str(tmp_path / "none.db")]) == 0
        assert "Records:" not in capsys.readouterr().out
        assert not (tmp_path / "none.db").exists()

    def test_requeue_failed(self, work_dir, capsys):
        progress = ProgressStore(work_dir)
        progress.prepare()
        progress.record_failure("/data/maven/hosted-a/x.pom", "boom")
        progress.record_failure("/data/maven/hosted-a/y.pom", "boom")

        assert main(["requeue-failed", "-w", str(work_dir), "-B", "1"]) == 0
        assert "Requeued into 2 shard(s)" in capsys.readouterr().out
        assert len(progress.pending_shards()) == 2
        assert progress.failed_entries() == []
