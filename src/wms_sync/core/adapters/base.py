"""Database adapter base class.

Both ends of the sync talk to a database: the WMS source (read-only queries
and a stored procedure) and the destination store (DDL and the batch
merge).  The adapter owns one long-lived connection per process; the sync
engine borrows it per cycle and never closes it.

Features:
    - Abstract ``connect()``, ``disconnect()``, ``get_connection()``
    - ``transaction()`` yields a DB-API cursor; commit on success,
      rollback on any exception, drop the connection when it is lost
    - ``query()`` returns rows as ``dict`` keyed by column name
    - Context-manager protocol for connection lifecycle

Tags:
    wms-sync, database, abstract-base, adapter-pattern
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from wms_sync.core.dialect import Dialect, get_dialect

from .types import DatabaseConfig, DatabaseType


class DatabaseAdapter(ABC):
    """
    Abstract base class for database adapters.

    Provides common functionality and defines the interface
    that all adapters must implement.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)
        self._lock = threading.RLock()

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this adapter's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseType:
        """Database type."""
        return self._config.db_type

    @property
    def config(self) -> DatabaseConfig:
        return self._config

    @property
    def is_connected(self) -> bool:
        """Whether adapter is connected."""
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to database."""
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to database."""
        ...

    @abstractmethod
    def get_connection(self) -> Any:
        """Get the shared DB-API connection, connecting on first use."""
        ...

    def _begin(self, conn: Any) -> None:
        """Hook for drivers that need an explicit ``BEGIN``."""

    def _is_connection_lost(self, error: BaseException) -> bool:
        """Whether ``error`` means the shared connection is unusable."""
        return False

    @contextmanager
    def transaction(self) -> Iterator[Any]:
        """Run a unit of work on one cursor inside one transaction."""
        with self._lock:
            conn = self.get_connection()
            self._begin(conn)
            cursor = conn.cursor()
            try:
                yield cursor
                conn.commit()
            except BaseException as e:
                if self._is_connection_lost(e):
                    # the next transaction reconnects
                    self.disconnect()
                else:
                    conn.rollback()
                raise
            finally:
                cursor.close()

    def execute(self, sql: str, params: Mapping[str, Any] | None = None) -> int:
        """Execute one statement in its own transaction, return rowcount."""
        with self.transaction() as cursor:
            execute_statement(cursor, sql, params)
            return cursor.rowcount

    def query(self, sql: str, params: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Execute query and return results as dicts."""
        with self.transaction() as cursor:
            execute_statement(cursor, sql, params)
            return fetch_dicts(cursor)

    def query_one(self, sql: str, params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        """Execute query and return single result."""
        results = self.query(sql, params)
        return results[0] if results else None

    def __enter__(self) -> DatabaseAdapter:
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.disconnect()


def execute_statement(cursor: Any, sql: str, params: Mapping[str, Any] | None = None) -> None:
    """Execute ``sql`` on ``cursor`` with optional named parameters."""
    # pymssql only %-formats when params are given
    if params:
        cursor.execute(sql, dict(params))
    else:
        cursor.execute(sql)


def fetch_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Fetch all remaining rows of ``cursor`` as dicts."""
    if cursor.description is None:
        return []
    columns = [desc[0] for desc in cursor.description]
    return [dict(zip(columns, row, strict=False)) for row in cursor.fetchall()]


__all__ = [
    "DatabaseAdapter",
    "execute_statement",
    "fetch_dicts",
]
