# tests/unit/core/test_unit_checksum.py - v1
"""Tests for core/checksum.py - streaming digests and algorithm validation."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest

from pathmigrate.core.checksum import (
    ChecksumEngine,
    ChecksumIOError,
    UnsupportedAlgorithmError,
    normalize_algorithm,
)

EMPTY_MD5 = "d41d8cd98f00b204e9800998ecf8427e"
EMPTY_SHA256 = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class TestNormalizeAlgorithm:
    @pytest.mark.parametrize("name,expected", [
        ("MD5", "md5"),
        ("md5", "md5"),
        ("SHA-1", "sha1"),
        ("SHA-256", "sha256"),
        ("sha512", "sha512"),
        (" Sha-384 ", "sha384"),
    ])
    def test_java_and_hashlib_names(self, name: str, expected: str):
        assert normalize_algorithm(name) == expected

    def test_unknown_algorithm(self):
        with pytest.raises(UnsupportedAlgorithmError, match="NOPE-9"):
            normalize_algorithm("NOPE-9")

    def test_variable_length_rejected(self):
        with pytest.raises(UnsupportedAlgorithmError):
            normalize_algorithm("shake_128")


class TestChecksumEngine:
    def test_unknown_algorithm_fails_at_construction(self):
        with pytest.raises(UnsupportedAlgorithmError):
            ChecksumEngine("whirlpool-9000")

    def test_deterministic(self, tmp_path: Path):
        f = tmp_path / "a.bin"
        f.write_bytes(b"fixed byte sequence")
        engine = ChecksumEngine("SHA-256")
        first = engine.digest(f)
        second = engine.digest(f)
        assert first == second
        assert first == hashlib.sha256(b"fixed byte sequence").hexdigest()

    def test_lowercase_hex(self, tmp_path: Path):
        f = tmp_path / "a.bin"
        f.write_bytes(b"\x00\xff" * 10)
        digest = ChecksumEngine("MD5").digest(f)
        assert digest == digest.lower()
        int(digest, 16)

    @pytest.mark.parametrize("algorithm,expected", [
        ("MD5", EMPTY_MD5),
        ("SHA-256", EMPTY_SHA256),
    ])
    def test_empty_file(self, tmp_path: Path, algorithm: str, expected: str):
        f = tmp_path / "empty"
        f.write_bytes(b"")
        assert ChecksumEngine(algorithm).digest(f) == expected

    def test_large_file_streams_across_blocks(self, tmp_path: Path):
        data = b"x" * (3 * 1024 * 1024 + 17)
        f = tmp_path / "big.bin"
        f.write_bytes(data)
        assert ChecksumEngine("md5").digest(f) == hashlib.md5(data).hexdigest()

    def test_sha1_matches_hashlib(self, tmp_path: Path):
        f = tmp_path / "a.bin"
        f.write_bytes(b"same")
        assert ChecksumEngine("sha1").digest(f) == hashlib.sha1(b"same").hexdigest()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ChecksumIOError, match="not a regular file"):
            ChecksumEngine().digest(tmp_path / "missing")

    def test_directory_is_not_a_file(self, tmp_path: Path):
        with pytest.raises(ChecksumIOError):
            ChecksumEngine().digest(tmp_path)

    def test_algorithm_property(self):
        assert ChecksumEngine("SHA-256").algorithm == "sha256"
