# tests/unit/store/test_redis_store.py - v1
"""Tests for store/redis_store.py - mocked Redis client."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from pathmigrate.store.models import PathRecord


def _make_store():
    hashes: dict[str, dict[str, str]] = {}
    sets: dict[str, set[str]] = {}

    mock_redis = MagicMock()
    mock_redis.hset = lambda k, mapping: hashes.setdefault(k, {}).update(mapping)
    mock_redis.hgetall = lambda k: dict(hashes.get(k, {}))
    mock_redis.sadd = lambda k, *v: sets.setdefault(k, set()).update(v)
    mock_redis.smembers = lambda k: set(sets.get(k, set()))

    with patch("pathmigrate.store.redis_store.RedisPathStore.__init__", return_value=None):
        from pathmigrate.store.redis_store import RedisPathStore
        store = RedisPathStore.__new__(RedisPathStore)
        store._client = mock_redis
    return store, hashes, sets


def _record(**overrides) -> PathRecord:
    defaults = dict(
        file_system="maven:hosted:build-42",
        path="/org/foo/bar/1.0/bar-1.0.pom",
        creation=datetime(2026, 2, 16, tzinfo=timezone.utc),
        file_id="f001",
        size=22,
        file_storage="maven/hosted-build-42/org/foo/bar/1.0/bar-1.0.pom",
    )
    defaults.update(overrides)
    return PathRecord(**defaults)


class TestRedisPathStore:
    def test_import_error_without_redis(self):
        """Clear ImportError when redis is not available."""
        import sys
        redis_mod = sys.modules.get("redis")
        sys.modules["redis"] = None  # type: ignore[assignment]
        try:
            from pathmigrate.store.redis_store import RedisPathStore
            with pytest.raises(ImportError, match="redis"):
                RedisPathStore(redis_url="redis://localhost")
        finally:
            if redis_mod is not None:
                sys.modules["redis"] = redis_mod
            else:
                sys.modules.pop("redis", None)

    def test_insert_and_get(self):
        store, hashes, _ = _make_store()
        store.insert(_record())
        info = store.get_file_info("maven:hosted:build-42", "/org/foo/bar/1.0/bar-1.0.pom")
        assert info is not None
        assert info.file_id == "f001"
        assert len(hashes) == 1

    def test_upsert_overwrites_fields(self):
        store, hashes, _ = _make_store()
        store.insert(_record(checksum="a"))
        store.insert(_record(checksum="b", size=5))
        (stored,) = hashes.values()
        assert stored["checksum"] == "b"
        assert stored["size"] == "5"
        assert len(hashes) == 1

    def test_missing_record(self):
        store, _, _ = _make_store()
        assert store.get_file_info("x", "/y") is None

    def test_missing_checksum_stored_empty(self):
        store, hashes, _ = _make_store()
        store.insert(_record(checksum=None))
        assert hashes["pathmigrate:pathmap:maven:hosted:build-42:/org/foo/bar/1.0/bar-1.0.pom"]["checksum"] == ""

    def test_union_uses_sadd(self):
        store, _, sets = _make_store()
        store.ensure_index_table("indycache.ga")
        store.union_update("indycache.ga", "org/foo/bar", {"build-1"})
        store.union_update("indycache.ga", "org/foo/bar", {"build-1", "build-2"})
        assert sets["indycache.ga:org/foo/bar"] == {"build-1", "build-2"}
        assert store.get_index("indycache.ga", "org/foo/bar") == {"build-1", "build-2"}

    def test_empty_union_is_noop(self):
        store, _, sets = _make_store()
        store.union_update("ga", "k", [])
        assert sets == {}
