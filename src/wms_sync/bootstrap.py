"""
Wiring: settings → adapters → pipeline → scheduled service.

The source and destination adapters are long-lived, process-wide
resources; they are created once here and borrowed by every cycle.
Tests and the CLI pass adapters in explicitly to skip the settings-driven
construction.
"""

from __future__ import annotations

from pathlib import Path

from wms_sync.core.adapters import DatabaseAdapter, DatabaseType, get_adapter
from wms_sync.core.errors import MissingConfigError
from wms_sync.core.settings import WmsSyncSettings, get_settings
from wms_sync.observability.metrics import SyncMetrics
from wms_sync.orders.pipeline import SYNC_TYPE, OrdersSyncPipeline
from wms_sync.orders.repository import OrderRepository
from wms_sync.orders.schema import OrderSchemaGuardian
from wms_sync.orders.source import OrderSource
from wms_sync.scheduling import SyncJob, SyncService


def _require(value: str | None, key: str) -> str:
    if not value:
        raise MissingConfigError(key)
    return value


def build_source_adapter(settings: WmsSyncSettings | None = None) -> DatabaseAdapter:
    """SQL Server adapter for the WMS source database."""
    settings = settings or get_settings()
    return get_adapter(
        DatabaseType.MSSQL,
        host=_require(settings.source_host, "WMS_SOURCE_HOST"),
        port=settings.source_port,
        database=_require(settings.source_database, "WMS_SOURCE_DATABASE"),
        username=settings.source_user,
        password=settings.source_password,
    )


def build_destination_adapter(settings: WmsSyncSettings | None = None) -> DatabaseAdapter:
    """Adapter for the destination store (SQL Server, or SQLite for dev)."""
    settings = settings or get_settings()
    if settings.is_sqlite:
        path = settings.database_path
        if path != ":memory:" and not path.startswith("file:"):
            Path(path).parent.mkdir(parents=True, exist_ok=True)
        return get_adapter(DatabaseType.SQLITE, path=path)
    return get_adapter(
        DatabaseType.MSSQL,
        host=_require(settings.db_server, "DB_SERVER"),
        port=settings.db_port,
        database=_require(settings.db_name, "DB_NAME"),
        username=settings.db_user,
        password=settings.db_password,
    )


def build_pipeline(
    settings: WmsSyncSettings | None = None,
    *,
    source_adapter: DatabaseAdapter | None = None,
    destination_adapter: DatabaseAdapter | None = None,
) -> OrdersSyncPipeline:
    """Assemble the orders pipeline from settings."""
    settings = settings or get_settings()
    destination = destination_adapter or build_destination_adapter(settings)
    source = OrderSource(
        source_adapter or build_source_adapter(settings),
        query=settings.orders_query,
        procedure=settings.orders_procedure,
        procedure_param=settings.orders_procedure_param,
        document_flag=settings.document_flag,
    )
    return OrdersSyncPipeline(
        source=source,
        guardian=OrderSchemaGuardian(destination, settings.orders_table),
        repository=OrderRepository(destination, settings.orders_table),
        allowed_order_types=settings.allowed_order_types,
    )


def build_service(
    settings: WmsSyncSettings | None = None,
    *,
    pipeline: OrdersSyncPipeline | None = None,
    metrics: SyncMetrics | None = None,
) -> SyncService:
    """Service with the orders job scheduled at ``sync_interval_ms``."""
    settings = settings or get_settings()
    pipeline = pipeline or build_pipeline(settings)
    metrics = metrics or SyncMetrics()
    service = SyncService(metrics=metrics)
    service.register(
        SyncJob(SYNC_TYPE, pipeline.run, metrics=metrics),
        interval_seconds=settings.sync_interval_seconds,
    )
    return service


__all__ = [
    "build_destination_adapter",
    "build_pipeline",
    "build_service",
    "build_source_adapter",
]
