# src/pathmigrate/index/ga_indexer.py - v1
"""Group-artifact (GA) index maintenance.

For every eligible metadata file the store name is added to the set kept
under the artifact's GA key. Writers only ever issue additive set unions,
never read-then-write, so replays and concurrent workers converge on the
same final sets.

Eligibility (all three must hold):
  1. the file system starts with the policy prefix (``maven:hosted:``)
  2. the logical path ends with the policy suffix (``.pom``)
  3. the store name after the prefix matches the store pattern in full
"""

from __future__ import annotations

import logging
import re
import threading
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator

from pathmigrate.store.base_path_store import BasePathStore

logger = logging.getLogger(__name__)

SCANNED_STORES = "scanned-stores"


class GaIndexPolicy(BaseModel):
    """Which records contribute to the GA index."""

    model_config = ConfigDict(frozen=True)

    filesystem_prefix: str = "maven:hosted:"
    path_suffix: str = ".pom"
    store_pattern: str = r"^build-\d+"

    _compiled: re.Pattern[str] | None = PrivateAttr(default=None)

    @field_validator("store_pattern")
    @classmethod
    def validate_pattern(cls, v: str) -> str:  # noqa: N805
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"invalid store pattern: {e}") from e
        return v

    def model_post_init(self, __context: object) -> None:
        self._compiled = re.compile(self.store_pattern) if self.store_pattern else None

    def store_name(self, file_system: str, path: str) -> str | None:
        """Return the store name when the record is eligible, else None."""
        if not file_system.startswith(self.filesystem_prefix):
            return None
        if not path.endswith(self.path_suffix):
            return None
        name = file_system[len(self.filesystem_prefix):]
        if self._compiled is None or not self._compiled.fullmatch(name):
            return None
        return name


def ga_key(path: str) -> str | None:
    """Return the grandparent directory of a logical path, without leading '/'.

    ``/org/foo/bar/1.0/bar-1.0.pom`` -> ``org/foo/bar``. Paths too shallow
    to have a GA return None.
    """
    parent = PurePosixPath(path).parent
    if str(parent) in ("", ".", "/"):
        return None
    key = str(parent.parent).lstrip("/")
    if key in ("", "."):
        return None
    return key


class GaIndexer:
    """Fold store names into the GA index of a path store."""

    def __init__(
        self,
        store: BasePathStore,
        table: str,
        policy: GaIndexPolicy | None = None,
    ) -> None:
        self._store = store
        self._table = table
        self._policy = policy or GaIndexPolicy()
        self._scanned: set[str] = set()
        self._lock = threading.Lock()
        self._flushed = False
        store.ensure_index_table(table)

    @property
    def table(self) -> str:
        return self._table

    def is_eligible(self, file_system: str, path: str) -> bool:
        return self._policy.store_name(file_system, path) is not None

    def index(self, file_system: str, path: str) -> str | None:
        """Index one record. Returns the GA key updated, or None (no-op)."""
        store_name = self._policy.store_name(file_system, path)
        if store_name is None:
            return None
        key = ga_key(path)
        if key is None:
            logger.debug("No GA for %s:%s, skipped", file_system, path)
            return None

        self._store.union_update(self._table, key, {store_name})
        with self._lock:
            self._scanned.add(store_name)
        return key

    def scanned(self) -> set[str]:
        with self._lock:
            return set(self._scanned)

    def flush_scanned(self) -> set[str]:
        """Write the reserved scanned-stores key once, from one thread."""
        with self._lock:
            if self._flushed:
                return set()
            stores = set(self._scanned)
        if stores:
            self._store.union_update(self._table, SCANNED_STORES, stores)
        with self._lock:
            self._flushed = True
        logger.info("Flushed %d scanned stores into %s", len(stores), self._table)
        return stores

    def dump_scanned(self, target: Path) -> None:
        """Write the scanned store names, one per line, for diagnostics."""
        target.write_text(
            "".join(f"{name}\n" for name in sorted(self.scanned())),
            encoding="utf-8",
        )
