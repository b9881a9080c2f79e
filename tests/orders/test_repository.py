"""Tests for the atomic batch upsert and the read side."""

from datetime import datetime
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from wms_sync.core.errors import ConstraintError, UpsertError
from wms_sync.orders.models import COLUMNS_BY_NAME
from wms_sync.orders.repository import OrderRepository, bind_value
from wms_sync.orders.schema import OrderSchemaGuardian


class TestUpsertAll:
    def test_empty_batch_is_noop(self):
        adapter = MagicMock()
        repo = OrderRepository(adapter)
        assert repo.upsert_all([]) == 0
        adapter.transaction.assert_not_called()

    def test_insert_round_trip(self, repository, make_order):
        order = make_order(
            numeric_order_id=1001,
            article_count=Decimal("120.5"),
            pallet_count=Decimal("3"),
            comment="#art: 120,5 #pal: 3",
            description="#art: 120,5 #pal: 3",
            can_proceed=False,
            source_updated_at=datetime(2024, 4, 28, 14, 0),
        )
        assert repository.upsert_all([order]) == 1

        stored = repository.get("N-1001")
        assert stored.numeric_order_id == 1001
        assert stored.arrival_date == datetime(2024, 5, 1, 8, 30)
        assert stored.expected_date == stored.arrival_date
        assert stored.article_count == Decimal("120.5")
        assert stored.pallet_count == Decimal("3")
        assert stored.box_count is None
        assert stored.can_proceed is False
        assert stored.comment == stored.description
        assert stored.last_synced_at is not None

    def test_same_key_twice_updates_one_row(self, repository, make_order):
        repository.upsert_all([make_order(importer="First")])
        first = repository.get("N-1001").last_synced_at

        repository.upsert_all([make_order(importer="Second")])
        stored = repository.get("N-1001")

        assert repository.count() == 1
        assert stored.importer == "Second"
        assert stored.last_synced_at > first

    def test_last_synced_strictly_increases_on_rapid_writes(self, repository, make_order):
        seen = []
        for _ in range(5):
            repository.upsert_all([make_order()])
            seen.append(repository.get("N-1001").last_synced_at)
        assert all(later > earlier for earlier, later in zip(seen, seen[1:]))

    def test_legacy_row_without_sync_time_gets_one(self, sqlite_adapter, make_order):
        sqlite_adapter.execute(
            'CREATE TABLE "WmsOrders" ('
            '"NarID" TEXT PRIMARY KEY, "ArrivalDate" TEXT NOT NULL, "LastSyncedAt" TEXT)'
        )
        sqlite_adapter.execute(
            "INSERT INTO \"WmsOrders\" VALUES ('OLD-1', '2023-01-01 00:00:00', NULL)"
        )
        OrderSchemaGuardian(sqlite_adapter).ensure()
        repository = OrderRepository(sqlite_adapter)

        repository.upsert_all([make_order("OLD-1")])
        first = repository.get("OLD-1").last_synced_at
        repository.upsert_all([make_order("OLD-1")])

        assert first is not None
        assert repository.get("OLD-1").last_synced_at > first

    def test_database_violation_rolls_back_whole_batch(self, repository, make_order):
        batch = [make_order("A"), make_order("B", arrival_date=None), make_order("C")]

        with pytest.raises(UpsertError) as exc:
            repository.upsert_all(batch)

        assert repository.count() == 0
        assert exc.value.context.metadata["record_count"] == 3
        assert exc.value.context.table == "WmsOrders"

    def test_bound_violation_rolls_back_whole_batch(self, repository, make_order):
        repository.upsert_all([make_order("A", importer="Original")])
        batch = [make_order("A", importer="Changed"), make_order("B", comment="x" * 1001)]

        with pytest.raises(UpsertError) as exc:
            repository.upsert_all(batch)

        assert isinstance(exc.value.cause, ConstraintError)
        assert repository.count() == 1
        assert repository.get("A").importer == "Original"

    def test_huge_decimal_rolls_back_batch(self, repository, make_order):
        batch = [make_order("A"), make_order("B", box_count=Decimal("1e30"))]

        with pytest.raises(UpsertError) as exc:
            repository.upsert_all(batch)

        assert isinstance(exc.value.cause, ConstraintError)
        assert repository.count() == 0

    def test_sqlite_enforces_string_bounds(self, orders_db):
        with pytest.raises(Exception):
            orders_db.execute(
                'INSERT INTO "WmsOrders" ("NarID", "ArrivalDate", "LastSyncedAt") VALUES (:k, :a, :s)',
                {"k": "K" * 51, "a": "2024-05-01", "s": "2024-05-01"},
            )


class TestReadSide:
    def test_list_orders_sorted_and_limited(self, repository, make_order):
        repository.upsert_all(
            [
                make_order("B", expected_date=datetime(2024, 5, 3), arrival_date=datetime(2024, 5, 3)),
                make_order("A", expected_date=datetime(2024, 5, 1), arrival_date=datetime(2024, 5, 1)),
                make_order("C", expected_date=datetime(2024, 5, 2), arrival_date=datetime(2024, 5, 2)),
            ]
        )
        assert [o.order_key for o in repository.list_orders()] == ["A", "C", "B"]
        assert [o.order_key for o in repository.list_orders(limit=2)] == ["A", "C"]

    def test_get_missing(self, repository):
        assert repository.get("nope") is None

    def test_count(self, repository, make_order):
        assert repository.count() == 0
        repository.upsert_all([make_order("A"), make_order("B")])
        assert repository.count() == 2


class TestBindValue:
    def test_decimal_quantized(self):
        assert bind_value(COLUMNS_BY_NAME["BoxCount"], Decimal("1.23456789")) == Decimal("1.234568")

    def test_decimal_out_of_range(self):
        with pytest.raises(ConstraintError):
            bind_value(COLUMNS_BY_NAME["BoxCount"], Decimal("1e12"))

    @pytest.mark.parametrize("value", [Decimal("1e30"), Decimal("-1e40"), Decimal("NaN"), Decimal("Infinity")])
    def test_decimal_beyond_context_is_constraint_error(self, value):
        with pytest.raises(ConstraintError):
            bind_value(COLUMNS_BY_NAME["BoxCount"], value)

    def test_decimal_rounding_past_bound(self):
        with pytest.raises(ConstraintError):
            bind_value(COLUMNS_BY_NAME["BoxCount"], Decimal("999999999999.9999999"))

    def test_string_too_long(self):
        with pytest.raises(ConstraintError):
            bind_value(COLUMNS_BY_NAME["OrderStatus"], "x" * 11)

    def test_int_range(self):
        with pytest.raises(ConstraintError):
            bind_value(COLUMNS_BY_NAME["OrderId"], 2**31)

    def test_datetime_required(self):
        with pytest.raises(ConstraintError):
            bind_value(COLUMNS_BY_NAME["ArrivalDate"], "2024-05-01")

    def test_none_passes(self):
        assert bind_value(COLUMNS_BY_NAME["ArrivalDate"], None) is None
