# src/pathmigrate/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for scan, migrate, target store and logging options.
Command-line flags are applied on top as overrides (see main.py).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pathmigrate.core.checksum import UnsupportedAlgorithmError, normalize_algorithm
from pathmigrate.logging.handlers import parse_size

_INDEX_TABLE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class ConfigurationError(Exception):
    """Raised when configuration is invalid or internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Source storage ===
    storage_root: Path = Path("/opt/indy/var/lib/indy/storage")
    storage_root_marker: str = "maven"

    # === Working directory ===
    work_dir: Path = Path("./")

    # === Scan ===
    scan_filter: str = ""
    batch_size: int = 100_000
    failed_batch_size: int = 10_000
    threads: int = 1

    # === Dedup ===
    dedup_enabled: bool = False
    dedup_algorithm: str = "MD5"

    # === GA index ===
    ga_index_enabled: bool = True
    ga_store_pattern: str = r"^build-\d+"
    ga_index_table: str = "indycache.ga"
    ga_filesystem_prefix: str = "maven:hosted:"
    ga_path_suffix: str = ".pom"

    # === Target store ===
    store_backend: Literal["sqlite", "redis"] = "sqlite"
    store_sqlite_path: Path = Path("pathmap.db")
    store_redis_url: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("batch_size", "failed_batch_size", "threads")
    @classmethod
    def validate_positive(cls, v: int) -> int:  # noqa: N805
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("log_rotation")
    @classmethod
    def validate_rotation(cls, v: str) -> str:  # noqa: N805
        parse_size(v)
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Collect every cross-field problem into one ConfigurationError."""
        errors: list[str] = []

        if self.dedup_enabled:
            try:
                normalize_algorithm(self.dedup_algorithm)
            except UnsupportedAlgorithmError as e:
                errors.append(str(e))

        for name in ("scan_filter", "ga_store_pattern"):
            pattern = getattr(self, name)
            if not pattern:
                continue
            try:
                re.compile(pattern)
            except re.error as e:
                errors.append(f"{name.upper()} is not a valid regex: {e}")

        if self.ga_index_enabled and not _INDEX_TABLE.match(self.ga_index_table):
            errors.append(f"GA_INDEX_TABLE is not a valid table name: {self.ga_index_table!r}")

        if self.store_backend == "redis" and not self.store_redis_url:
            errors.append("STORE_REDIS_URL must be set when STORE_BACKEND=redis")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def absolute_work_dir(self) -> Path:
        return self.work_dir.expanduser().resolve()


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (command-line flags or tests).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]


def validate_storage_root(settings: Settings) -> None:
    """Check the storage root looks like an artifact volume.

    The root must be a directory with at least one direct child whose name
    contains ``storage_root_marker``.

    Raises:
        ConfigurationError: If the root is missing or has no such child.
    """
    root = settings.storage_root.expanduser()
    if not root.is_dir():
        raise ConfigurationError(f"Base dir {root} is not a directory")
    try:
        children = [c.name for c in root.iterdir()]
    except OSError as e:
        raise ConfigurationError(f"Can not list base dir {root}: {e}") from e
    marker = settings.storage_root_marker
    if marker and not any(marker in name for name in children):
        raise ConfigurationError(
            f"Base dir {root} is not a valid volume to store artifacts "
            f"(no {marker!r} entry)"
        )
