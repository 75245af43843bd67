# src/pathmigrate/core/paths.py - v1
"""Physical path -> (file system, logical path, store path) derivation.

Storage layout under the root:

    <root>/<package-type>/<store-type>-<store-name>/<relative path>

e.g. ``<root>/maven/hosted-build-42/org/foo/bar/1.0/bar-1.0.pom`` maps to
file system ``maven:hosted:build-42``, logical path
``/org/foo/bar/1.0/bar-1.0.pom`` and store path
``maven/hosted-build-42/org/foo/bar/1.0/bar-1.0.pom``.
"""

from __future__ import annotations

import os
from pathlib import Path, PurePosixPath
from typing import NamedTuple

STORE_TYPES: frozenset[str] = frozenset({"hosted", "group", "remote"})


class DerivationError(ValueError):
    """Raised when a physical path does not follow the storage layout."""


class DerivedPath(NamedTuple):
    """Logical addressing of one physical file."""

    file_system: str
    path: str
    store_path: str


class PathDeriver:
    """Pure mapping from physical paths under a storage root."""

    def __init__(self, storage_root: Path | str) -> None:
        self._root = Path(os.path.normpath(os.path.abspath(storage_root)))

    @property
    def storage_root(self) -> Path:
        return self._root

    def derive(self, physical_path: Path | str) -> DerivedPath:
        """Derive the addressing triple for one file.

        Raises:
            DerivationError: If the path is outside the root, too shallow,
                or its store directory is not ``<type>-<name>``.
        """
        path = Path(os.path.normpath(os.path.abspath(physical_path)))
        try:
            relative = path.relative_to(self._root)
        except ValueError as e:
            raise DerivationError(
                f"{physical_path} is not under storage root {self._root}"
            ) from e

        parts = PurePosixPath(relative.as_posix()).parts
        if len(parts) < 3:
            raise DerivationError(
                f"{physical_path} is not in <pkg>/<type>-<name>/<path> layout"
            )

        pkg_type, store_dir, rest = parts[0], parts[1], parts[2:]
        store_type, sep, store_name = store_dir.partition("-")
        if not sep or not store_name:
            raise DerivationError(
                f"Store directory {store_dir!r} is not <type>-<name>"
            )
        if store_type not in STORE_TYPES:
            raise DerivationError(
                f"Unknown store type {store_type!r} in {physical_path}"
            )

        return DerivedPath(
            file_system=f"{pkg_type}:{store_type}:{store_name}",
            path="/" + "/".join(rest),
            store_path="/".join(parts),
        )
