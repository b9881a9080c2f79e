"""
Structured, cycle-aware logging.

- structlog configuration (console or JSON)
- cycle context propagation via contextvars
- step timing with span tracing

Usage:
    from wms_sync.logging import configure_logging, get_logger, log_step, set_context

    configure_logging()
    log = get_logger(__name__)

    set_context(sync_type="orders", cycle_id="3f2a9c01b7de")
    with log_step("orders.fetch"):
        rows = source.fetch_raw_orders()
"""

from wms_sync.logging.config import configure_logging, is_configured
from wms_sync.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    get_context,
    get_logger,
    new_cycle_id,
    push_context,
    set_context,
)
from wms_sync.logging.timing import TimingResult, log_db_operation, log_step, timed_block

__all__ = [
    "configure_logging",
    "is_configured",
    "get_logger",
    "set_context",
    "clear_context",
    "get_context",
    "bind_context",
    "push_context",
    "new_cycle_id",
    "LogContext",
    "TimingResult",
    "log_step",
    "timed_block",
    "log_db_operation",
]
