# src/pathmigrate/main.py - v1
"""CLI entry point: scan, migrate, status, requeue-failed commands.

Usage:
    pathmigrate scan [-b BASE] [-w WORKDIR] [-f FILTER] [-B BATCH] [-t THREADS]
    pathmigrate migrate [-b BASE] [-w WORKDIR] [-d] [-A ALGO] [-t THREADS] ...
    pathmigrate status [-w WORKDIR] [--sqlite-path DB]
    pathmigrate requeue-failed [-w WORKDIR]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pathmigrate.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from pathmigrate.config.settings import ConfigurationError, load_settings
    from pathmigrate.logging.context import set_command_context

    try:
        settings = load_settings(**_overrides(args))
    except (ConfigurationError, ValidationError) as exc:
        _setup_logging(args.verbose)
        logger.error("Invalid configuration: %s", exc)
        return 1

    _setup_logging(args.verbose, settings)
    set_command_context(args.command)

    try:
        return args.func(args, settings)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except ConfigurationError as exc:
        logger.error("Validation failed: %s", exc)
        return 1
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pathmigrate",
        description=f"pathmigrate v{__version__} - artifact storage to path-mapped store migration",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- scan ---
    p_scan = subparsers.add_parser(
        "scan", help="Scan the storage root into todo shards",
    )
    _add_common(p_scan)
    p_scan.add_argument(
        "-f", "--filter", dest="scan_filter", default=None,
        help="Regex for files to exclude",
    )
    p_scan.add_argument(
        "-B", "--batch", dest="batch_size", type=int, default=None,
        help="Max paths per todo shard (default: 100000)",
    )
    p_scan.set_defaults(func=_cmd_scan)

    # --- migrate ---
    p_migrate = subparsers.add_parser(
        "migrate", help="Migrate todo shards into the target store",
    )
    _add_common(p_migrate)
    p_migrate.add_argument(
        "--backend", dest="store_backend", choices=["sqlite", "redis"], default=None,
        help="Target store backend (default: sqlite)",
    )
    p_migrate.add_argument(
        "--sqlite-path", dest="store_sqlite_path", type=Path, default=None,
        help="SQLite database file for the sqlite backend",
    )
    p_migrate.add_argument(
        "--redis-url", dest="store_redis_url", default=None,
        help="Redis URL for the redis backend",
    )
    p_migrate.add_argument(
        "-d", "--dedupe", dest="dedup_enabled", action="store_true", default=None,
        help="Compute a checksum of every file for dedup",
    )
    p_migrate.add_argument(
        "-A", "--dedupe-algorithm", dest="dedup_algorithm", default=None,
        help="Checksum algorithm (default: MD5)",
    )
    p_migrate.add_argument(
        "-i", "--index-ga", dest="ga_index_enabled",
        action=argparse.BooleanOptionalAction, default=None,
        help="Maintain the GA index (default: on)",
    )
    p_migrate.add_argument(
        "-g", "--ga-store-pattern", dest="ga_store_pattern", default=None,
        help=r"Regex for store names indexed in the GA table (default: ^build-\d+)",
    )
    p_migrate.add_argument(
        "-c", "--ga-table", dest="ga_index_table", default=None,
        help="GA index table (default: indycache.ga)",
    )
    p_migrate.set_defaults(func=_cmd_migrate)

    # --- status ---
    p_status = subparsers.add_parser(
        "status", help="Show migration progress of a working dir",
    )
    p_status.add_argument(
        "-w", "--workdir", dest="work_dir", type=Path, default=None,
        help="Working dir (default: ./)",
    )
    p_status.add_argument(
        "--sqlite-path", dest="store_sqlite_path", type=Path, default=None,
        help="SQLite target store to count migrated records in",
    )
    p_status.set_defaults(func=_cmd_status)

    # --- requeue-failed ---
    p_requeue = subparsers.add_parser(
        "requeue-failed", help="Turn failed paths into new todo shards",
    )
    p_requeue.add_argument(
        "-w", "--workdir", dest="work_dir", type=Path, default=None,
        help="Working dir (default: ./)",
    )
    p_requeue.add_argument(
        "-B", "--batch", dest="failed_batch_size", type=int, default=None,
        help="Max paths per requeued shard (default: 10000)",
    )
    p_requeue.set_defaults(func=_cmd_requeue)

    return parser


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "-b", "--base", dest="storage_root", type=Path, default=None,
        help="Base dir of the artifact storage",
    )
    p.add_argument(
        "-w", "--workdir", dest="work_dir", type=Path, default=None,
        help="Working dir for todo/processed files (default: ./)",
    )
    p.add_argument(
        "-t", "--threads", dest="threads", type=int, default=None,
        help="Worker threads (default: 1)",
    )


_SETTING_ARGS = (
    "storage_root", "work_dir", "scan_filter", "batch_size", "failed_batch_size",
    "threads", "store_backend", "store_sqlite_path", "store_redis_url",
    "dedup_enabled", "dedup_algorithm", "ga_index_enabled", "ga_store_pattern",
    "ga_index_table",
)


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flags given on the command line, keyed by settings field."""
    overrides: dict[str, Any] = {}
    for name in _SETTING_ARGS:
        value = getattr(args, name, None)
        if value is not None:
            overrides[name] = value
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return overrides


def _cmd_scan(args: argparse.Namespace, settings: Any) -> int:
    """Scan the storage root and write todo shards."""
    from pathmigrate.batch.scanner import ScanError, run_scan
    from pathmigrate.config.settings import validate_storage_root
    from pathmigrate.progress.store import ProgressStore

    logger.info("Base storage dir for artifacts: %s", settings.storage_root)
    logger.info("Working dir for whole migration process: %s", settings.absolute_work_dir)
    logger.info("Batch of paths per shard: %d, threads: %d", settings.batch_size, settings.threads)

    validate_storage_root(settings)

    try:
        result = run_scan(settings, ProgressStore(settings.work_dir))
    except ScanError as exc:
        logger.error("Scan failed: %s", exc)
        return 1

    print("\nScan complete:")
    print(f"  Paths found:  {result.total_paths}")
    print(f"  Todo shards:  {result.shard_count}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")
    return 0


def _cmd_migrate(args: argparse.Namespace, settings: Any) -> int:
    """Migrate all pending shards."""
    from pathmigrate.batch.coordinator import (
        CoordinatorHandle,
        MigrationError,
        build_coordinator,
    )

    logger.info("Target store: %s", settings.store_backend)
    logger.info("Dedup: %s (%s)", settings.dedup_enabled, settings.dedup_algorithm)
    logger.info(
        "GA index: %s (pattern=%s, table=%s)",
        settings.ga_index_enabled, settings.ga_store_pattern, settings.ga_index_table,
    )

    handle = CoordinatorHandle(lambda: build_coordinator(settings))
    coordinator = handle.get_or_create()
    try:
        result = coordinator.run()
    except MigrationError as exc:
        logger.error("Migration failed: %s", exc)
        if exc.result is not None:
            _print_migration_summary(exc.result)
        return 1
    finally:
        handle.release()

    _print_migration_summary(result)
    return 0


def _cmd_status(args: argparse.Namespace, settings: Any) -> int:
    """Display progress of a working dir."""
    from pathmigrate.progress.store import ProgressStore

    progress = ProgressStore(settings.work_dir)
    if not progress.work_dir.is_dir():
        logger.error("Not a directory: %s", progress.work_dir)
        return 1

    state = progress.load_state()
    summary = progress.read_scan_summary()
    print(f"\nStatus of {settings.absolute_work_dir}:")
    print(f"  Scan final:   {progress.is_scan_final()}")
    if summary is not None:
        print(f"  Paths:        {summary.total_paths}")
    print(f"  Todo:         {len(progress.pending_shards())}")
    print(f"  Processed:    {len(progress.processed_shards())}")
    print(f"  Failed paths: {len(progress.failed_entries())}")
    records = _count_records(settings)
    if records is not None:
        print(f"  Records:      {records}")
    print(f"  Status:       {state.status if state else 'unknown'}")
    return 0


def _count_records(settings: Any) -> int | None:
    """Records in a local sqlite target store, None when there is none."""
    from pathmigrate.store.sqlite_store import SqlitePathStore

    if settings.store_backend != "sqlite" or not settings.store_sqlite_path.is_file():
        return None
    store = SqlitePathStore(settings.store_sqlite_path)
    try:
        return store.count_records()
    finally:
        store.close()


def _cmd_requeue(args: argparse.Namespace, settings: Any) -> int:
    """Move failed paths back into todo shards."""
    from pathmigrate.progress.store import ProgressStore

    progress = ProgressStore(settings.work_dir)
    written = progress.requeue_failed(settings.failed_batch_size)
    print(f"\nRequeued into {len(written)} shard(s)")
    return 0


def _print_migration_summary(result: Any) -> None:
    print("\nMigration summary:")
    print(f"  Shards:       {len(result.shards)}")
    print(f"  Migrated:     {result.migrated}")
    print(f"  Failed paths: {result.failed}")
    print(f"  Bad shards:   {len(result.failed_shards)}")
    print(f"  Completed:    {result.completed}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")


def _setup_logging(verbose: bool, settings: Any = None) -> None:
    """Configure logging for CLI usage."""
    from pathmigrate.logging.logger import setup_logging

    if settings is None:
        setup_logging(level="DEBUG" if verbose else "INFO")
        return
    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        work_dir=str(settings.work_dir),
    )


if __name__ == "__main__":
    sys.exit(main())
