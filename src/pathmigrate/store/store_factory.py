# src/pathmigrate/store/store_factory.py - v1
"""Factory for path store instantiation."""

from __future__ import annotations

from pathmigrate.config.settings import Settings
from pathmigrate.store.base_path_store import BasePathStore


class UnsupportedStoreBackendError(ValueError):
    """Raised when STORE_BACKEND names an unknown backend."""


def create_path_store(settings: Settings | None = None) -> BasePathStore:
    """Instantiate the configured migration target.

    Args:
        settings: Application settings. Defaults to a local sqlite file.

    Returns:
        Configured BasePathStore implementation.
    """
    backend = "sqlite" if settings is None else settings.store_backend

    if backend == "sqlite":
        from pathmigrate.store.sqlite_store import SqlitePathStore
        db_path = "pathmap.db" if settings is None else str(settings.store_sqlite_path)
        return SqlitePathStore(db_path=db_path)

    if backend == "redis":
        from pathmigrate.store.redis_store import RedisPathStore
        if settings is None or not settings.store_redis_url:
            raise ValueError(
                "STORE_REDIS_URL must be set when STORE_BACKEND=redis"
            )
        return RedisPathStore(redis_url=settings.store_redis_url)

    raise UnsupportedStoreBackendError(f"Unsupported store backend: {backend!r}")
