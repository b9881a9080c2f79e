"""
Order repository: the atomic batch upsert and the read side.

``upsert_all`` merges a batch by ``NarID`` inside ONE transaction.  Any
failing row (a NOT NULL or length violation in the database, or a value
that does not fit its column here) rolls the whole batch back and surfaces
as a single :class:`UpsertError` carrying the attempted record count.

``LastSyncedAt`` is never bound from Python.  The dialect's merge statement
assigns server time and guarantees it strictly increases per key.

Example:
    >>> repo = OrderRepository(adapter)
    >>> repo.upsert_all(orders)
    12
    >>> repo.get("X1").last_synced_at
    datetime.datetime(2024, 5, 1, 6, 0, 0, 123000)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal
from typing import Any

from wms_sync.core.adapters import DatabaseAdapter, execute_statement
from wms_sync.core.errors import ConstraintError, UpsertError
from wms_sync.logging import get_logger, log_db_operation
from wms_sync.orders.models import (
    BOUND_COLUMNS,
    INT_MAX,
    INT_MIN,
    KEY_COLUMN,
    ORDER_COLUMNS,
    SYNCED_COLUMN,
    ColumnSpec,
    Order,
)

log = get_logger(__name__)

LIST_ORDER_BY = ["ExpectedDate", "OrderDate", KEY_COLUMN]


def bind_value(column: ColumnSpec, value: Any) -> Any:
    """Fit ``value`` to ``column`` exactly, never widening it.

    Raises:
        ConstraintError: If the value is out of the column's bounds.
    """
    if value is None:
        return None

    if column.kind == "string":
        text = str(value)
        if column.length is not None and len(text) > column.length:
            raise ConstraintError(
                f"{column.name} exceeds {column.length} characters",
                field=column.name,
                value=text[:40],
                constraint=f"length<={column.length}",
            )
        return text

    if column.kind == "decimal":
        quantum = Decimal(1).scaleb(-column.scale)
        limit = Decimal(10) ** (column.precision - column.scale)
        number = Decimal(value)
        # quantize fails outright on values wider than the decimal context
        if number.is_finite() and abs(number) < limit:
            number = number.quantize(quantum, rounding=ROUND_HALF_EVEN)
        if not number.is_finite() or abs(number) >= limit:
            raise ConstraintError(
                f"{column.name} does not fit DECIMAL({column.precision}, {column.scale})",
                field=column.name,
                value=value,
                constraint=f"decimal({column.precision},{column.scale})",
            )
        return number

    if column.kind == "integer":
        if not INT_MIN <= int(value) <= INT_MAX:
            raise ConstraintError(
                f"{column.name} is out of INT range", field=column.name, value=value, constraint="int32"
            )
        return int(value)

    if column.kind == "boolean":
        return bool(value)

    if column.kind == "datetime" and not isinstance(value, datetime):
        raise ConstraintError(
            f"{column.name} expects a datetime", field=column.name, value=value, constraint="datetime"
        )
    return value


class OrderRepository:
    """Destination store for normalized orders."""

    def __init__(self, adapter: DatabaseAdapter, table: str = "WmsOrders"):
        self._adapter = adapter
        self._table = table
        dialect = adapter.dialect
        self._upsert_sql = dialect.upsert_by_key(
            table, KEY_COLUMN, [c.name for c in BOUND_COLUMNS], SYNCED_COLUMN
        )
        self._columns = [c.name for c in ORDER_COLUMNS]

    @property
    def table(self) -> str:
        return self._table

    def _params(self, order: Order) -> dict[str, Any]:
        adapt = self._adapter.dialect.adapt_value
        row = order.to_row()
        return {c.name: adapt(bind_value(c, row[c.name])) for c in BOUND_COLUMNS}

    def upsert_all(self, orders: Sequence[Order]) -> int:
        """Merge ``orders`` atomically; returns the number of rows merged."""
        if not orders:
            return 0

        count = len(orders)
        try:
            with log_db_operation("upsert", self._table, rows=count):
                with self._adapter.transaction() as cursor:
                    for order in orders:
                        execute_statement(cursor, self._upsert_sql, self._params(order))
        except Exception as e:
            raise UpsertError(
                f"Upsert of {count} orders into {self._table} failed: {e}", cause=e
            ).with_context(table=self._table, step="upsert", record_count=count) from e
        return count

    def list_orders(self, limit: int = 100) -> list[Order]:
        """Stored orders by expected date, order date, key."""
        dialect = self._adapter.dialect
        sql = dialect.select_ordered(self._table, self._columns, LIST_ORDER_BY, "limit")
        rows = self._adapter.query(sql, {"limit": limit})
        return [Order.from_row(row, dialect.parse_datetime) for row in rows]

    def get(self, order_key: str) -> Order | None:
        dialect = self._adapter.dialect
        cols = ", ".join(dialect.quote(c) for c in self._columns)
        sql = (
            f"SELECT {cols} FROM {dialect.table_ref(self._table)} "
            f"WHERE {dialect.quote(KEY_COLUMN)} = {dialect.param('key')}"
        )
        row = self._adapter.query_one(sql, {"key": order_key})
        return Order.from_row(row, dialect.parse_datetime) if row else None

    def count(self) -> int:
        dialect = self._adapter.dialect
        row = self._adapter.query_one(f"SELECT COUNT(*) AS n FROM {dialect.table_ref(self._table)}")
        return int(row["n"]) if row else 0


__all__ = ["OrderRepository", "bind_value"]
