"""Core primitives: errors, settings, SQL dialects and database adapters."""

from wms_sync.core.errors import (
    ConfigError,
    ErrorCategory,
    ErrorContext,
    SourceError,
    UpsertError,
    WmsSyncError,
)
from wms_sync.core.settings import WmsSyncSettings, get_settings

__all__ = [
    "ConfigError",
    "ErrorCategory",
    "ErrorContext",
    "SourceError",
    "UpsertError",
    "WmsSyncError",
    "WmsSyncSettings",
    "get_settings",
]
