# src/pathmigrate/logging/context.py - v1
"""Contextual logging support: attach command, shard and worker to log records.

Worker threads start with empty context, so each worker sets its own shard
context at the top of its run loop.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_command: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "command", default=None
)
_shard: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "shard", default=None
)
_worker: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "worker", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    command: str | None = None
    shard: str | None = None
    worker: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        command=_command.get(),
        shard=_shard.get(),
        worker=_worker.get(),
    )


def set_command_context(command: str) -> None:
    """Set command-level context (scan, migrate, ...)."""
    _command.set(command)


def set_shard_context(shard: str, worker: str | None = None) -> None:
    """Set shard-level context (called once per worker run)."""
    _shard.set(shard)
    _worker.set(worker)


def clear_context() -> None:
    """Reset all context variables."""
    _command.set(None)
    _shard.set(None)
    _worker.set(None)
