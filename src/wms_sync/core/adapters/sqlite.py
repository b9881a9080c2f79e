"""SQLite database adapter."""

from __future__ import annotations

from typing import Any

from wms_sync.core.errors import DatabaseConnectionError

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType


class SQLiteAdapter(DatabaseAdapter):
    """
    SQLite database adapter.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Single-host deployments without SQL Server
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        readonly: bool = False,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.SQLITE,
            path=path,
            readonly=readonly,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: Any = None

    def connect(self) -> None:
        """Connect to SQLite database."""
        import sqlite3

        path = self._config.path or ":memory:"
        uri = path.startswith("file:") or "?" in path

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
            )

            if self._config.readonly:
                self._conn.execute("PRAGMA query_only = ON")

            self._connected = True

        except sqlite3.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQLite: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False

    def get_connection(self) -> Any:
        """Get the SQLite connection."""
        if not self._conn:
            self.connect()
        return self._conn

    def _begin(self, conn: Any) -> None:
        # DDL and DML alike run inside the transaction
        if not conn.in_transaction:
            conn.execute("BEGIN")


__all__ = [
    "SQLiteAdapter",
]
