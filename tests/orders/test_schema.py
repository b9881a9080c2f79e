"""Tests for the memoized, additive-only schema guardian."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from wms_sync.core.errors import SchemaEnsureError
from wms_sync.orders.models import ORDER_COLUMNS
from wms_sync.orders.schema import EnsureState, OrderSchemaGuardian


def _columns(adapter, table="WmsOrders"):
    return [row["name"] for row in adapter.query("SELECT name FROM pragma_table_info(:t)", {"t": table})]


def _indexes(adapter, table="WmsOrders"):
    return {row["name"] for row in adapter.query("SELECT name FROM pragma_index_list(:t)", {"t": table})}


class TestEnsureOnSQLite:
    def test_creates_table_and_indexes(self, sqlite_adapter):
        guardian = OrderSchemaGuardian(sqlite_adapter)
        guardian.ensure()

        assert _columns(sqlite_adapter) == [c.name for c in ORDER_COLUMNS]
        assert {"IX_WmsOrders_ArrivalDate", "IX_WmsOrders_ExpectedDate"} <= _indexes(sqlite_adapter)
        assert guardian.state is EnsureState.DONE

    def test_custom_table_name(self, sqlite_adapter):
        OrderSchemaGuardian(sqlite_adapter, table="PendingOrders").ensure()
        assert "NarID" in _columns(sqlite_adapter, "PendingOrders")
        assert "IX_PendingOrders_ArrivalDate" in _indexes(sqlite_adapter, "PendingOrders")

    def test_adds_missing_columns_to_legacy_table(self, sqlite_adapter):
        sqlite_adapter.execute(
            'CREATE TABLE "WmsOrders" ('
            '"NarID" TEXT PRIMARY KEY, "OrderNumber" TEXT, "ArrivalDate" TEXT NOT NULL, '
            '"Comment" TEXT, "LastSyncedAt" TEXT)'
        )
        sqlite_adapter.execute(
            "INSERT INTO \"WmsOrders\" VALUES ('OLD-1', 'PO-1', '2023-01-01 00:00:00', 'keep me', NULL)"
        )

        OrderSchemaGuardian(sqlite_adapter).ensure()

        columns = _columns(sqlite_adapter)
        assert set(columns) == {c.name for c in ORDER_COLUMNS}
        # existing columns keep their place, new ones are appended
        assert columns[:5] == ["NarID", "OrderNumber", "ArrivalDate", "Comment", "LastSyncedAt"]
        row = sqlite_adapter.query_one('SELECT "Comment", "CanProceed" FROM "WmsOrders"')
        assert row == {"Comment": "keep me", "CanProceed": None}

    def test_idempotent_across_guardians(self, sqlite_adapter):
        OrderSchemaGuardian(sqlite_adapter).ensure()
        second = OrderSchemaGuardian(sqlite_adapter)
        second.ensure()
        assert second.state is EnsureState.DONE
        assert len(_columns(sqlite_adapter)) == len(ORDER_COLUMNS)


class _CountingGuardian(OrderSchemaGuardian):
    """Guardian whose schema work is instrumented and can be held open."""

    def __init__(self, failures: int = 0):
        super().__init__(MagicMock())
        self.calls = 0
        self.failures = failures
        self.entered = threading.Event()
        self.release = threading.Event()
        self.release.set()

    def _apply(self) -> None:
        self.calls += 1
        self.entered.set()
        self.release.wait(5)
        if self.calls <= self.failures:
            raise RuntimeError("permission denied on schema dbo")


class TestMemoization:
    def test_second_call_is_noop(self):
        guardian = _CountingGuardian()
        guardian.ensure()
        guardian.ensure()
        assert guardian.calls == 1
        assert guardian.attempts == 1

    def test_concurrent_calls_share_one_attempt(self):
        guardian = _CountingGuardian()
        guardian.release.clear()
        errors = []

        def call():
            try:
                guardian.ensure()
            except Exception as e:  # pragma: no cover - surfaced by assert below
                errors.append(e)

        first = threading.Thread(target=call)
        first.start()
        assert guardian.entered.wait(5)
        assert guardian.state is EnsureState.IN_PROGRESS

        second = threading.Thread(target=call)
        second.start()
        time.sleep(0.05)
        guardian.release.set()
        first.join(5)
        second.join(5)

        assert errors == []
        assert guardian.calls == 1
        assert guardian.state is EnsureState.DONE

    def test_failure_is_not_cached(self):
        guardian = _CountingGuardian(failures=1)

        with pytest.raises(SchemaEnsureError) as exc:
            guardian.ensure()
        assert guardian.state is EnsureState.NOT_STARTED
        assert exc.value.context.table == "WmsOrders"
        assert isinstance(exc.value.cause, RuntimeError)

        guardian.ensure()
        assert guardian.calls == 2
        assert guardian.state is EnsureState.DONE

    def test_waiter_sees_same_failure(self):
        guardian = _CountingGuardian(failures=1)
        guardian.release.clear()
        results = {}

        def call(name):
            try:
                guardian.ensure()
                results[name] = None
            except SchemaEnsureError as e:
                results[name] = e

        first = threading.Thread(target=call, args=("first",))
        first.start()
        assert guardian.entered.wait(5)
        second = threading.Thread(target=call, args=("second",))
        second.start()
        time.sleep(0.2)
        guardian.release.set()
        first.join(5)
        second.join(5)

        assert isinstance(results["first"], SchemaEnsureError)
        assert isinstance(results["second"], SchemaEnsureError)
        assert guardian.calls == 1

    def test_reset_forces_recheck(self):
        guardian = _CountingGuardian()
        guardian.ensure()
        guardian.reset()
        guardian.ensure()
        assert guardian.calls == 2
