"""
Destination schema guardian for the orders table.

``ensure()`` is safe to call at the top of every cycle.  The first call
creates the table (key ``NarID``), adds any column from ``ORDER_COLUMNS``
the table lacks, and creates the two date indexes.  Evolution is additive
only: columns are never dropped or retyped, and added columns are NULL-able.

Concurrent callers share one in-flight attempt::

    NotStarted ──ensure()──▶ InProgress(future) ──ok──▶ Done
        ▲                          │
        └────────── failure ───────┘

A failed attempt is not remembered; the next call starts from scratch.

Tags:
    wms-sync, schema, migration, additive, memoization
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from concurrent.futures import Future
from enum import Enum

from wms_sync.core.adapters import DatabaseAdapter, execute_statement, fetch_dicts
from wms_sync.core.errors import SchemaEnsureError
from wms_sync.logging import get_logger, log_step
from wms_sync.orders.models import INDEXED_COLUMNS, ORDER_COLUMNS, ColumnSpec

log = get_logger(__name__)


class EnsureState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class OrderSchemaGuardian:
    """Memoized, additive-only ensure of the destination orders table."""

    def __init__(
        self,
        adapter: DatabaseAdapter,
        table: str = "WmsOrders",
        columns: Sequence[ColumnSpec] = ORDER_COLUMNS,
    ):
        self._adapter = adapter
        self._table = table
        self._columns = tuple(columns)
        self._lock = threading.Lock()
        self._state = EnsureState.NOT_STARTED
        self._in_flight: Future | None = None
        self.attempts = 0

    @property
    def table(self) -> str:
        return self._table

    @property
    def state(self) -> EnsureState:
        return self._state

    def ensure(self) -> None:
        """Ensure the table, its columns and its indexes exist.

        Raises:
            SchemaEnsureError: If the attempt this call waited on failed.
        """
        with self._lock:
            if self._state is EnsureState.DONE:
                return
            future = self._in_flight
            owner = future is None
            if owner:
                future = Future()
                self._in_flight = future
                self._state = EnsureState.IN_PROGRESS
                self.attempts += 1

        if not owner:
            future.result()
            return

        try:
            self._apply()
        except Exception as e:
            error = e if isinstance(e, SchemaEnsureError) else SchemaEnsureError(
                f"Could not ensure table {self._table}: {e}", cause=e
            )
            error.with_context(table=self._table, step="ensure_schema")
            with self._lock:
                self._in_flight = None
                self._state = EnsureState.NOT_STARTED
            future.set_exception(error)
            if error is e:
                raise
            raise error from e

        with self._lock:
            self._in_flight = None
            self._state = EnsureState.DONE
        future.set_result(None)

    def reset(self) -> None:
        """Forget a completed ensure so the next call re-checks the table."""
        with self._lock:
            if self._state is EnsureState.DONE:
                self._state = EnsureState.NOT_STARTED

    def _apply(self) -> None:
        dialect = self._adapter.dialect
        with log_step("orders.schema.ensure", table=self._table) as timer:
            with self._adapter.transaction() as cursor:
                execute_statement(cursor, dialect.table_exists_query(), {"table": self._table})
                created = not fetch_dicts(cursor)
                if created:
                    execute_statement(cursor, dialect.create_table(self._table, list(self._columns)))

                execute_statement(cursor, dialect.columns_query(), {"table": self._table})
                existing = {row["name"].lower() for row in fetch_dicts(cursor)}
                added = []
                for column in self._columns:
                    if column.name.lower() not in existing:
                        execute_statement(cursor, dialect.add_column(self._table, column))
                        added.append(column.name)

                for column in INDEXED_COLUMNS:
                    execute_statement(
                        cursor,
                        dialect.create_index_if_missing(f"IX_{self._table}_{column}", self._table, column),
                    )

            timer.add_metric("created", created)
            timer.add_metric("added_columns", added)
        if added:
            log.info("orders.schema.columns_added", table=self._table, columns=added)


__all__ = ["EnsureState", "OrderSchemaGuardian"]
