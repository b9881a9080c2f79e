"""
Shared pytest fixtures for wms-sync tests.

This module provides:
- Settings/env isolation so a developer's ``WMS_*`` or ``DB_*`` variables
  never leak into tests
- An in-memory SQLite destination adapter (and one with the schema ensured)
- A fake WMS source adapter speaking the SQL Server dialect
- A raw WMS row factory
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import MagicMock

import pytest

from wms_sync.core.adapters import DatabaseAdapter, SQLiteAdapter
from wms_sync.core.dialect import SQLServerDialect
from wms_sync.core.settings import clear_settings_cache
from wms_sync.orders.models import Order
from wms_sync.orders.repository import OrderRepository
from wms_sync.orders.schema import OrderSchemaGuardian

_LEGACY_ENV = ("DB_SERVER", "DB_PORT", "DB_USER", "DB_PASS", "DB_NAME")


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests without an explicit marker as unit tests."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Generator[None, None, None]:
    """Drop WMS_*/DB_* env vars and run from an empty directory (no .env)."""
    for key in list(os.environ):
        if key.upper().startswith("WMS_") or key.upper() in _LEGACY_ENV:
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Databases
# =============================================================================


@pytest.fixture
def sqlite_adapter() -> Generator[SQLiteAdapter, None, None]:
    """Connected in-memory SQLite adapter."""
    adapter = SQLiteAdapter(":memory:")
    adapter.connect()
    yield adapter
    adapter.disconnect()


@pytest.fixture
def orders_db(sqlite_adapter: SQLiteAdapter) -> SQLiteAdapter:
    """In-memory SQLite adapter with the WmsOrders table ensured."""
    OrderSchemaGuardian(sqlite_adapter).ensure()
    return sqlite_adapter


@pytest.fixture
def repository(orders_db: SQLiteAdapter) -> OrderRepository:
    return OrderRepository(orders_db)


@pytest.fixture
def source_adapter() -> MagicMock:
    """
    Fake WMS source adapter.

    Speaks the SQL Server dialect (so procedure calls render as ``EXEC``);
    configure rows or failures through ``source_adapter.query``.
    """
    adapter = MagicMock(spec=DatabaseAdapter)
    adapter.dialect = SQLServerDialect()
    adapter.query.return_value = []
    return adapter


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def make_raw() -> Callable[..., dict[str, Any]]:
    """Factory for raw WMS rows; keyword overrides replace or add columns."""

    def _make(**overrides: Any) -> dict[str, Any]:
        row: dict[str, Any] = {
            "NarID": "N-1001",
            "NarNr": "PO-77",
            "SupplierName": "Alpina DOO",
            "ExpectedArrivalDate": "2024-05-01T08:30:00",
            "ArticleCode": "ART-9",
            "ArticleName": "Mineral water 0.5l",
            "OrderedBoxes": 12,
            "OrderedPallets": 2,
            "Comment": None,
            "LastModified": datetime(2024, 4, 28, 14, 0),
        }
        row.update(overrides)
        return row

    return _make


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Factory for normalized orders."""

    def _make(order_key: str = "N-1001", **overrides: Any) -> Order:
        values: dict[str, Any] = {
            "order_key": order_key,
            "arrival_date": datetime(2024, 5, 1, 8, 30),
            "expected_date": datetime(2024, 5, 1, 8, 30),
            "order_number": "PO-77",
            "importer": "Alpina DOO",
        }
        values.update(overrides)
        return Order(**values)

    return _make
