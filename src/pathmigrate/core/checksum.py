# src/pathmigrate/core/checksum.py - v1
"""Streaming content checksum used for dedup.

The engine validates its algorithm eagerly so that a bad choice is caught
while the configuration is loaded, never half-way through a migration.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# 1 MiB read blocks
_BLOCK_SIZE = 1024 * 1024

# Java-style names accepted on the command line
_ALIASES: dict[str, str] = {
    "md5": "md5",
    "sha": "sha1",
    "sha1": "sha1",
    "sha-1": "sha1",
    "sha224": "sha224",
    "sha-224": "sha224",
    "sha256": "sha256",
    "sha-256": "sha256",
    "sha384": "sha384",
    "sha-384": "sha384",
    "sha512": "sha512",
    "sha-512": "sha512",
}


class UnsupportedAlgorithmError(ValueError):
    """Raised when a checksum algorithm is unknown to hashlib."""


class ChecksumIOError(OSError):
    """Raised when a file cannot be read while computing its digest."""


def normalize_algorithm(name: str) -> str:
    """Map a user-supplied algorithm name to its hashlib name.

    Raises:
        UnsupportedAlgorithmError: If hashlib cannot provide it, or if it
            is a variable-length digest (shake_*), which has no fixed hex form.
    """
    key = name.strip().lower()
    resolved = _ALIASES.get(key, key.replace("-", "_"))
    if resolved.startswith("shake_"):
        raise UnsupportedAlgorithmError(
            f"Variable-length digest not supported: {name!r}"
        )
    try:
        hashlib.new(resolved)
    except (ValueError, TypeError) as e:
        raise UnsupportedAlgorithmError(
            f"Unsupported checksum algorithm: {name!r}"
        ) from e
    return resolved


class ChecksumEngine:
    """Compute lowercase hex digests of regular files.

    A fresh hash object is created for every file, so one engine can be
    shared by all worker threads.
    """

    def __init__(self, algorithm: str = "MD5") -> None:
        self._algorithm = normalize_algorithm(algorithm)

    @property
    def algorithm(self) -> str:
        return self._algorithm

    def digest(self, file_path: Path | str) -> str:
        """Stream a file through the digest.

        Raises:
            ChecksumIOError: If the path is not a regular file or a read fails.
        """
        path = Path(file_path)
        if not path.is_file():
            raise ChecksumIOError(
                f"Digest error: file not exists or not a regular file: {path}"
            )

        h = hashlib.new(self._algorithm)
        try:
            with path.open("rb") as fh:
                for block in iter(lambda: fh.read(_BLOCK_SIZE), b""):
                    h.update(block)
        except OSError as e:
            raise ChecksumIOError(f"Can not read {path}: {e}") from e

        digest = h.hexdigest()
        logger.debug("%s(%s) = %s", self._algorithm, path, digest)
        return digest
