"""Database adapters for the WMS source and the destination store.

Each adapter is import-guarded: the database driver is only required at
``connect()`` time, not at import time.
"""

from .base import DatabaseAdapter, execute_statement, fetch_dicts
from .mssql import SQLServerAdapter
from .registry import AdapterRegistry, adapter_registry, get_adapter
from .sqlite import SQLiteAdapter
from .types import DatabaseConfig, DatabaseType

__all__ = [
    "DatabaseAdapter",
    "DatabaseConfig",
    "DatabaseType",
    "SQLiteAdapter",
    "SQLServerAdapter",
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
    "execute_statement",
    "fetch_dicts",
]
