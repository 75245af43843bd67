# tests/unit/logging/test_unit_context.py - v1
"""Tests for logging/context.py."""

from __future__ import annotations

import threading

from pathmigrate.logging.context import (
    LogContext,
    clear_context,
    get_context,
    set_command_context,
    set_shard_context,
)


class TestLogContext:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_empty(self):
        assert get_context().as_dict() == {}

    def test_set_and_clear(self):
        set_command_context("scan")
        set_shard_context("shard-00000", worker="migrate_0")
        assert get_context() == LogContext(command="scan", shard="shard-00000", worker="migrate_0")
        clear_context()
        assert get_context() == LogContext()

    def test_threads_do_not_share_shard(self):
        set_shard_context("main-shard")
        seen: list[str | None] = []

        def worker() -> None:
            seen.append(get_context().shard)
            set_shard_context("thread-shard")

        t = threading.Thread(target=worker)
        t.start()
        t.join()
        assert seen == [None]
        assert get_context().shard == "main-shard"
