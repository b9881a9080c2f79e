"""
Logging context management using contextvars.

Cycle-aware context that attaches to every log entry emitted while a sync
cycle runs, without passing identifiers through the pipeline.  Each worker
thread starts with an empty context; the sync job sets ``sync_type`` and
``cycle_id`` at the top of the cycle.
"""

import uuid
from contextvars import ContextVar
from dataclasses import asdict, dataclass
from typing import Any

import structlog


def new_cycle_id() -> str:
    """Generate a short cycle ID (12 hex chars)."""
    return uuid.uuid4().hex[:12]


@dataclass
class LogContext:
    """
    Execution context attached to all log entries.

    Cycle identifiers:
        sync_type: Sync job name (e.g., "orders")
        cycle_id: Unique ID of the running cycle
        trigger: What started the cycle ("startup", "interval", "manual")

    Tracing (for nested timing blocks):
        span_id: Current span identifier
        parent_span_id: Parent span for nested operations

    Step context:
        step: Current pipeline step name
    """

    sync_type: str | None = None
    cycle_id: str | None = None
    trigger: str | None = None

    span_id: str | None = None
    parent_span_id: str | None = None

    step: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "LogContext":
        """Create new context with merged values."""
        current = asdict(self)
        current.update({k: v for k, v in kwargs.items() if v is not None and k in current})
        return LogContext(**current)


_log_context: ContextVar[LogContext] = ContextVar("wms_sync_log_context")  # noqa: B039


def get_context() -> LogContext:
    """Get the current log context."""
    return _log_context.get(LogContext())


def set_context(
    sync_type: str | None = None,
    cycle_id: str | None = None,
    trigger: str | None = None,
    step: str | None = None,
    span_id: str | None = None,
    parent_span_id: str | None = None,
) -> LogContext:
    """
    Set the current log context.

    This replaces the current context. Use bind_context() to add to existing.
    """
    ctx = LogContext(
        sync_type=sync_type,
        cycle_id=cycle_id,
        trigger=trigger,
        step=step,
        span_id=span_id,
        parent_span_id=parent_span_id,
    )
    _log_context.set(ctx)
    return ctx


def bind_context(**kwargs) -> LogContext:
    """Merge values into the current context."""
    updated = get_context().merge(**kwargs)
    _log_context.set(updated)
    return updated


def clear_context() -> None:
    """Clear the current context (reset to empty)."""
    _log_context.set(LogContext())


class _ContextToken:
    """Token for restoring context after a scoped operation."""

    def __init__(self, token):
        self._token = token

    def restore(self):
        """Restore the previous context."""
        _log_context.reset(self._token)


def push_context(**kwargs) -> _ContextToken:
    """
    Push new context values, returning a token to restore later.

    Usage:
        token = push_context(step="fetch")
        try:
            fetch()
        finally:
            token.restore()
    """
    updated = get_context().merge(**kwargs)
    token = _log_context.set(updated)
    return _ContextToken(token)


def add_context_processor(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that adds the cycle context to every log entry."""
    for key, value in get_context().to_dict().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger (typically ``get_logger(__name__)``)."""
    return structlog.get_logger(name)
