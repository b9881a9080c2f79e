"""Pending-order sync: normalization, source fetch, schema and upsert."""

from wms_sync.orders.models import ORDER_COLUMNS, ColumnSpec, Order
from wms_sync.orders.normalizer import NormalizeResult, normalize, normalize_records
from wms_sync.orders.pipeline import OrdersSyncPipeline, SyncResult
from wms_sync.orders.repository import OrderRepository
from wms_sync.orders.schema import OrderSchemaGuardian
from wms_sync.orders.source import OrderSource

__all__ = [
    "ORDER_COLUMNS",
    "ColumnSpec",
    "NormalizeResult",
    "Order",
    "OrderRepository",
    "OrderSchemaGuardian",
    "OrderSource",
    "OrdersSyncPipeline",
    "SyncResult",
    "normalize",
    "normalize_records",
]
