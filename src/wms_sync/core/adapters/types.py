"""Database types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from wms_sync.core.errors import ConfigError


class DatabaseType(str, Enum):
    """Supported database types."""

    SQLITE = "sqlite"
    MSSQL = "mssql"


@dataclass
class DatabaseConfig:
    """
    Configuration for a database connection.

    Different fields are used by different database types.
    """

    # Common
    db_type: DatabaseType = DatabaseType.SQLITE

    # SQLite
    path: str | None = None

    # SQL Server
    host: str = "localhost"
    port: int = 1433
    database: str = ""
    username: str | None = None
    password: str | None = None

    # Options
    connect_timeout: int = 30
    query_timeout: int = 0  # 0 = wait for the server
    readonly: bool = False

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def to_connection_string(self) -> str:
        """Connection string for display (never includes the password)."""
        match self.db_type:
            case DatabaseType.SQLITE:
                return self.path or ":memory:"
            case DatabaseType.MSSQL:
                return f"mssql://{self.username or ''}@{self.host}:{self.port}/{self.database}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseType",
    "DatabaseConfig",
]
