# src/logging/context.py — v2
"""Contextual logging support: attach request_id, video_id, stage to log records.

Values live in context variables, so each request task (and every
write-back task spawned from it, which inherits a copy) sees its own values.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_video_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "video_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    video_id: str | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        video_id=_video_id.get(),
        stage=_stage.get(),
    )


def set_request_context(request_id: str, video_id: str | None = None) -> None:
    """Set request-level context (called once per inbound lookup)."""
    _request_id.set(request_id)
    _video_id.set(video_id)
    _stage.set(None)


def set_stage(stage: str | None) -> None:
    """Set the current processing stage (cache, upstream, migrate, ...)."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _video_id.set(None)
    _stage.set(None)
