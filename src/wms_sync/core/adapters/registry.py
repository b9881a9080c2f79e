"""Database adapter registry and factory.

Consumers never hard-code adapter class names.  The registry maps
``DatabaseType`` strings to adapter classes and ``get_adapter()`` creates
a configured (not yet connected) instance.

Tags:
    wms-sync, database, registry, factory
"""

from __future__ import annotations

from typing import Any

from wms_sync.core.errors import ConfigError

from .base import DatabaseAdapter
from .mssql import SQLServerAdapter
from .sqlite import SQLiteAdapter
from .types import DatabaseType


class AdapterRegistry:
    """
    Registry for database adapter factories.

    Pre-registered adapters:
    - ``sqlite``: :class:`SQLiteAdapter`
    - ``mssql`` / ``sqlserver``: :class:`SQLServerAdapter`
    """

    def __init__(self):
        self._factories: dict[str, type[DatabaseAdapter]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        """Register default adapters."""
        self._factories["sqlite"] = SQLiteAdapter
        self._factories["mssql"] = SQLServerAdapter
        self._factories["sqlserver"] = SQLServerAdapter  # Alias

    def register(self, name: str, adapter_class: type[DatabaseAdapter]) -> None:
        """Register an adapter factory."""
        self._factories[name.lower()] = adapter_class

    def create(self, name: str, **kwargs: Any) -> DatabaseAdapter:
        """Create an adapter by name."""
        name = name.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown database adapter: {name}")
        return self._factories[name](**kwargs)

    def list_adapters(self) -> list[str]:
        """List registered adapter names."""
        return sorted(self._factories.keys())


# Global registry
adapter_registry = AdapterRegistry()


def get_adapter(
    db_type: DatabaseType | str,
    **kwargs: Any,
) -> DatabaseAdapter:
    """
    Get a database adapter by type.

    Usage:
        adapter = get_adapter(DatabaseType.SQLITE, path="data/wms_sync.db")
        adapter = get_adapter("mssql", host="192.168.100.11", database="WMS_VF")
    """
    if isinstance(db_type, DatabaseType):
        name = db_type.value
    else:
        name = db_type

    return adapter_registry.create(name, **kwargs)


__all__ = [
    "AdapterRegistry",
    "adapter_registry",
    "get_adapter",
]
