# src/pathmigrate/store/redis_store.py - v1
"""Redis-based path store (STORE_BACKEND=redis).

Records are kept as hashes; the GA index uses native Redis sets, so the
union update is a single SADD and safe under any number of writers.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pathmigrate.store.base_path_store import BasePathStore
from pathmigrate.store.models import FileInfo, PathRecord

logger = logging.getLogger(__name__)

_KEY_PREFIX = "pathmigrate:pathmap:"


def _record_key(file_system: str, path: str) -> str:
    return f"{_KEY_PREFIX}{file_system}:{path}"


def _index_key(table: str, key: str) -> str:
    return f"{table}:{key}"


class RedisPathStore(BasePathStore):
    """Redis-backed path map for distributed deployments."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    def insert(self, record: PathRecord) -> None:
        mapping = {
            "file_id": record.file_id,
            "size": str(record.size),
            "file_storage": record.file_storage,
            "checksum": record.checksum or "",
            "creation": record.creation.isoformat(),
        }
        self._client.hset(_record_key(record.file_system, record.path), mapping=mapping)

    def get_file_info(self, file_system: str, path: str) -> FileInfo | None:
        data = self._client.hgetall(_record_key(file_system, path))
        if not data:
            return None
        return FileInfo(file_id=data["file_id"], file_storage=data["file_storage"])

    def ensure_index_table(self, table: str) -> None:
        # Redis sets are created on first SADD
        logger.debug("Index table %s uses key prefix %s:", table, table)

    def union_update(self, table: str, key: str, values: Iterable[str]) -> None:
        members = sorted(set(values))
        if members:
            self._client.sadd(_index_key(table, key), *members)

    def get_index(self, table: str, key: str) -> set[str]:
        return set(self._client.smembers(_index_key(table, key)))

    def ping(self) -> None:
        self._client.ping()

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()
