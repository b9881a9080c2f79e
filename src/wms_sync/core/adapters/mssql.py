"""SQL Server database adapter (pymssql).

Used for the WMS source and, in production, for the destination store.
The driver is only required at ``connect()`` time.
"""

from __future__ import annotations

import re
from typing import Any

from wms_sync.core.errors import ConfigError, DatabaseConnectionError
from wms_sync.logging import get_logger

from .base import DatabaseAdapter
from .types import DatabaseConfig, DatabaseType

log = get_logger(__name__)

_DBLIB_CODE = re.compile(r"DB-Lib error message (\d+)")


class SQLServerAdapter(DatabaseAdapter):
    """
    SQL Server database adapter.

    Holds one long-lived pymssql connection.  ``autocommit`` stays off so
    every ``transaction()`` is an explicit unit of work.  When the server or
    the network drops the connection, it is discarded and the next
    transaction reconnects.
    """

    # DB-Lib: timeout, read/write failure, unable to connect, EOF, dead DBPROCESS
    LOST_CONNECTION_CODES = frozenset({20003, 20004, 20006, 20009, 20017, 20047})

    def __init__(
        self,
        host: str = "localhost",
        port: int = 1433,
        database: str = "",
        username: str | None = None,
        password: str | None = None,
        *,
        connect_timeout: int = 30,
        query_timeout: int = 0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseType.MSSQL,
            host=host,
            port=port,
            database=database,
            username=username,
            password=password,
            connect_timeout=connect_timeout,
            query_timeout=query_timeout,
            options=kwargs,
        )
        super().__init__(config)
        self._conn: Any = None

    def connect(self) -> None:
        """Connect to SQL Server."""
        try:
            import pymssql
        except ImportError:
            raise ConfigError(
                "pymssql is required for SQL Server. Install with: pip install pymssql"
            ) from None

        try:
            self._conn = pymssql.connect(
                server=self._config.host,
                port=self._config.port,
                user=self._config.username,
                password=self._config.password,
                database=self._config.database,
                login_timeout=self._config.connect_timeout,
                timeout=self._config.query_timeout,
                autocommit=False,
                **self._config.options,
            )
            self._connected = True
        except pymssql.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to SQL Server {self._config.host}:{self._config.port}: {e}",
                cause=e,
            ) from e

    def disconnect(self) -> None:
        """Close SQL Server connection."""
        if self._conn:
            import pymssql

            try:
                self._conn.close()
            except pymssql.Error as e:
                log.warning("mssql.close_failed", host=self._config.host, error=str(e))
            self._conn = None
            self._connected = False

    def get_connection(self) -> Any:
        """Get the SQL Server connection."""
        if not self._conn:
            self.connect()
        return self._conn

    def _is_connection_lost(self, error: BaseException) -> bool:
        import pymssql

        if isinstance(error, pymssql.InterfaceError):
            return True
        if not isinstance(error, pymssql.Error):
            return False
        text = str(error)
        codes = {arg for arg in error.args if isinstance(arg, int)}
        codes.update(int(code) for code in _DBLIB_CODE.findall(text))
        if codes & self.LOST_CONNECTION_CODES:
            log.warning("mssql.connection_lost", host=self._config.host, error=text[:200])
            return True
        return "dbprocess is dead" in text.lower()


__all__ = [
    "SQLServerAdapter",
]
