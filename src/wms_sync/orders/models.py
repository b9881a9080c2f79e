"""Order value object and the destination column layout.

``ORDER_COLUMNS`` is the single source of truth for the destination table:
the schema guardian creates and extends the table from it, the repository
binds rows from it, and the dialects render its types.  Column names are
PascalCase to stay compatible with existing consumers of ``WmsOrders``.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Any, Literal

ColumnKind = Literal["string", "integer", "decimal", "datetime", "boolean"]

KEY_COLUMN = "NarID"
SYNCED_COLUMN = "LastSyncedAt"
INDEXED_COLUMNS = ("ArrivalDate", "ExpectedDate")

DECIMAL_PRECISION = 18
DECIMAL_SCALE = 6

INT_MIN = -(2**31)
INT_MAX = 2**31 - 1


@dataclass(frozen=True)
class ColumnSpec:
    """One destination column.

    Attributes:
        name: Column name in the destination table
        attribute: ``Order`` attribute bound to it (``None`` for server-set)
        kind: Logical type rendered by the dialect
        length: Max characters for ``string`` columns
        precision/scale: Bounds for ``decimal`` columns
        nullable: Whether NULL is allowed when the table is created
        primary_key: Part of the primary key
    """

    name: str
    attribute: str | None
    kind: ColumnKind
    length: int | None = None
    precision: int | None = None
    scale: int | None = None
    nullable: bool = True
    primary_key: bool = False


def _string(name: str, attribute: str, length: int, **kwargs: Any) -> ColumnSpec:
    return ColumnSpec(name, attribute, "string", length=length, **kwargs)


def _decimal(name: str, attribute: str) -> ColumnSpec:
    return ColumnSpec(
        name, attribute, "decimal", precision=DECIMAL_PRECISION, scale=DECIMAL_SCALE
    )


ORDER_COLUMNS: tuple[ColumnSpec, ...] = (
    _string(KEY_COLUMN, "order_key", 50, nullable=False, primary_key=True),
    ColumnSpec("OrderId", "numeric_order_id", "integer"),
    _string("OrderTypeCode", "order_type_code", 10),
    _string("OrderNumber", "order_number", 100),
    _string("CustomerCode", "customer_code", 50),
    _string("CustomerName", "customer_name", 255),
    _string("Importer", "importer", 150),
    _string("Article", "article", 255),
    _string("ArticleDescription", "article_description", 500),
    _decimal("ArticleCount", "article_count"),
    _decimal("BoxCount", "box_count"),
    _decimal("PalletCount", "pallet_count"),
    ColumnSpec("OrderDate", "order_date", "datetime"),
    ColumnSpec("ExpectedDate", "expected_date", "datetime"),
    ColumnSpec("ArrivalDate", "arrival_date", "datetime", nullable=False),
    _string("IsRealized", "is_realized", 10),
    _string("OrderStatus", "order_status", 10),
    _string("Description", "description", 1000),
    _string("Comment", "comment", 1000),
    _string("SourceReference", "source_reference", 100),
    ColumnSpec("SourceUpdatedAt", "source_updated_at", "datetime"),
    ColumnSpec("ScheduledStart", "scheduled_start", "datetime"),
    _string("OriginalOrderNumber", "original_order_number", 100),
    ColumnSpec("CanProceed", "can_proceed", "boolean"),
    ColumnSpec(SYNCED_COLUMN, None, "datetime", nullable=False),
)

COLUMNS_BY_NAME: dict[str, ColumnSpec] = {c.name: c for c in ORDER_COLUMNS}

# Columns the repository binds; LastSyncedAt is assigned by the server
BOUND_COLUMNS: tuple[ColumnSpec, ...] = tuple(c for c in ORDER_COLUMNS if c.attribute)


@dataclass(frozen=True)
class Order:
    """Canonical pending order, keyed by the WMS order key."""

    order_key: str
    arrival_date: datetime
    numeric_order_id: int | None = None
    order_type_code: str | None = None
    order_number: str | None = None
    customer_code: str | None = None
    customer_name: str | None = None
    importer: str | None = None
    article: str | None = None
    article_description: str | None = None
    article_count: Decimal | None = None
    box_count: Decimal | None = None
    pallet_count: Decimal | None = None
    order_date: datetime | None = None
    expected_date: datetime | None = None
    is_realized: str | None = None
    order_status: str | None = None
    description: str | None = None
    comment: str | None = None
    source_reference: str | None = None
    source_updated_at: datetime | None = None
    scheduled_start: datetime | None = None
    original_order_number: str | None = None
    can_proceed: bool | None = None
    last_synced_at: datetime | None = None

    def to_row(self) -> dict[str, Any]:
        """Column name → value for every bound column."""
        return {c.name: getattr(self, c.attribute) for c in BOUND_COLUMNS}

    @classmethod
    def from_row(cls, row: dict[str, Any], parse_datetime=None) -> Order:
        """Build an Order from a destination row (column-named dict)."""
        names = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for column in ORDER_COLUMNS:
            if column.name not in row:
                continue
            attribute = column.attribute or "last_synced_at"
            if attribute not in names:
                continue
            value = row[column.name]
            if value is not None:
                if column.kind == "datetime" and parse_datetime is not None:
                    value = parse_datetime(value)
                elif column.kind == "decimal" and not isinstance(value, Decimal):
                    value = Decimal(str(value))
                elif column.kind == "boolean":
                    value = bool(value)
            values[attribute] = value
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly dict (CLI output)."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Decimal):
                value = format(value.normalize(), "f")
            result[f.name] = value
        return result


__all__ = [
    "BOUND_COLUMNS",
    "COLUMNS_BY_NAME",
    "ColumnSpec",
    "INDEXED_COLUMNS",
    "INT_MAX",
    "INT_MIN",
    "KEY_COLUMN",
    "ORDER_COLUMNS",
    "Order",
    "SYNCED_COLUMN",
]
