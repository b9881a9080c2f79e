"""
Structured error types for the WMS order sync.

Every failure the sync engine can raise carries a category, a retry hint,
structured context (sync type, source, table, record counts) and the
underlying driver exception as ``cause``. The scheduler catches these at the
cycle boundary and logs ``to_dict()``; nothing here ever reaches the process
top level.

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                        WmsSyncError                              │
        │  (category, retryable, context, cause)                          │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  TransientError        SourceError           ValidationError     │
        │  (retryable=True)      (SOURCE)              (VALIDATION)        │
        │       │                    │                      │              │
        │  DatabaseConnection   SourceObjectMissing    ConstraintError     │
        │                                                                  │
        │  ConfigError           DatabaseError         OrchestrationError  │
        │  (CONFIG)              (DATABASE)            (ORCHESTRATION)     │
        │       │                    │                      │              │
        │  MissingConfig        QueryError             ScheduleError       │
        │                       SchemaEnsureError                          │
        │                       UpsertError                                │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = UpsertError("Upsert of 12 orders failed").with_context(record_count=12)
    >>> error.to_dict()["context"]["record_count"]
    12

    >>> try:
    ...     raise ConnectionError("login timeout")
    ... except ConnectionError as e:
    ...     raise SourceError("WMS fetch failed", cause=e)
    Traceback (most recent call last):
    ...
    SourceError: WMS fetch failed

Guardrails:
    ❌ DON'T: Raise bare Exception from the pipeline
    ✅ DO: Wrap driver errors and pass them as ``cause=``

Tags:
    error-handling, exception-hierarchy, wms-sync
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    # Infrastructure
    NETWORK = "NETWORK"
    DATABASE = "DATABASE"

    # Source/data
    SOURCE = "SOURCE"
    VALIDATION = "VALIDATION"

    # Configuration
    CONFIG = "CONFIG"

    # Application
    ORCHESTRATION = "ORCHESTRATION"

    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Attributes:
        sync_type: Sync job the error occurred in (e.g. ``"orders"``)
        cycle_id: Identifier of the failing cycle
        step: Pipeline step (``ensure_schema``, ``fetch``, ``upsert``)
        source_name: Source object queried (query text or procedure name)
        table: Destination table
        metadata: Any additional key/value pairs
    """

    sync_type: str | None = None
    cycle_id: str | None = None
    step: str | None = None
    source_name: str | None = None
    table: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["sync_type", "cycle_id", "step", "source_name", "table"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class WmsSyncError(Exception):
    """
    Base exception for all sync engine errors.

    Subclasses set ``default_category`` and ``default_retryable`` so call
    sites only pass a message and, when wrapping, the original exception.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> WmsSyncError:
        """
        Add context to this error (fluent API).

        Usage:
            raise UpsertError("Batch failed").with_context(
                table="WmsOrders",
                record_count=42,
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS
# =============================================================================


class TransientError(WmsSyncError):
    """Temporary error that may succeed on the next cycle."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """Database connection could not be established."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# SOURCE ERRORS
# =============================================================================


class SourceError(WmsSyncError):
    """Hard failure fetching from the external order source."""

    default_category = ErrorCategory.SOURCE
    default_retryable = False


class SourceObjectMissingError(SourceError):
    """The configured ad-hoc query references an object that does not exist."""

    pass


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(WmsSyncError):
    """
    Data validation error.

    Never retryable - the data must change first.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        if self.constraint:
            result["constraint"] = self.constraint
        return result


class ConstraintError(ValidationError):
    """A value does not fit its destination column."""

    pass


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(WmsSyncError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class MissingConfigError(ConfigError):
    """Required configuration is missing."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"Missing required configuration: {key}")


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(WmsSyncError):
    """Destination database query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class QueryError(DatabaseError):
    """SQL statement failed."""

    pass


class SchemaEnsureError(DatabaseError):
    """Destination table, column or index could not be ensured."""

    default_retryable = True


class UpsertError(DatabaseError):
    """A batch upsert failed and was rolled back as a whole."""

    default_retryable = True


# =============================================================================
# ORCHESTRATION ERRORS
# =============================================================================


class OrchestrationError(WmsSyncError):
    """Scheduler or job error."""

    default_category = ErrorCategory.ORCHESTRATION
    default_retryable = False


class ScheduleError(OrchestrationError):
    """Schedule configuration or usage error."""

    pass


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, WmsSyncError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "WmsSyncError",
    "TransientError",
    "DatabaseConnectionError",
    "SourceError",
    "SourceObjectMissingError",
    "ValidationError",
    "ConstraintError",
    "ConfigError",
    "MissingConfigError",
    "DatabaseError",
    "QueryError",
    "SchemaEnsureError",
    "UpsertError",
    "OrchestrationError",
    "ScheduleError",
    "categorize_error",
]
