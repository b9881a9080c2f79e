"""
Logging configuration.

One entry point configures structured logging for the CLI and the
long-running sync service.

Configuration comes from arguments, falling back to :class:`WmsSyncSettings`
(``WMS_LOG_LEVEL`` / ``WMS_LOG_FORMAT``):
- Log level: DEBUG | INFO | WARNING | ERROR (default: INFO)
- Output format: json | console (default: console)
- Per-sync-type debug: sync types whose DEBUG lines always pass

Usage:
    from wms_sync.logging import configure_logging
    configure_logging()

    configure_logging(level="DEBUG", format="json")
"""

import logging
import sys
from typing import Any, Literal

import structlog
from structlog.types import Processor

from wms_sync.logging.context import add_context_processor

_configured = False


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    debug_sync_types: list[str] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structured logging for the process.

    Subsequent calls are no-ops unless ``force=True``.

    Args:
        level: Log level (overrides settings)
        format: Output format (overrides settings)
        debug_sync_types: Sync types (e.g. ``["orders"]``) logged at DEBUG
            regardless of ``level``
        force: Reconfigure even if already configured
    """
    global _configured

    if _configured and not force:
        return

    if level is None or format is None:
        from wms_sync.core.settings import get_settings

        settings = get_settings()
        level = level or settings.log_level
        format = format or settings.log_format

    log_level = level.upper()
    log_format = format.lower()

    processors: list[Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_context_processor,
        structlog.processors.format_exc_info,
        structlog.processors.StackInfoRenderer(),
    ]

    if debug_sync_types:
        processors.insert(0, _make_sync_type_filter(debug_sync_types, log_level))
    else:
        processors.insert(0, structlog.stdlib.filter_by_level)

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # The sync-type filter does its own level check
    stdlib_level = logging.DEBUG if debug_sync_types else getattr(logging, log_level)
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=stdlib_level,
        force=True,
    )
    logging.getLogger("wms_sync").setLevel(stdlib_level)

    _configured = True


def _make_sync_type_filter(debug_sync_types: list[str], default_level: str):
    """
    Create a processor that enables DEBUG for specific sync types.

    Lines carrying a listed ``sync_type`` always pass; everything else is
    held to ``default_level``.
    """
    default_level_num = getattr(logging, default_level)

    def sync_type_debug_filter(
        logger: Any,
        method_name: str,
        event_dict: dict,
    ) -> dict:
        sync_type = event_dict.get("sync_type")
        if sync_type is None:
            from wms_sync.logging.context import get_context

            sync_type = get_context().sync_type

        level = event_dict.get("level", method_name)
        level_num = getattr(logging, level.upper(), logging.DEBUG)

        if sync_type and sync_type in debug_sync_types:
            return event_dict

        if level_num < default_level_num:
            raise structlog.DropEvent

        return event_dict

    return sync_type_debug_filter


def is_configured() -> bool:
    """Check if logging has been configured."""
    return _configured
