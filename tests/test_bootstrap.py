"""Tests for settings-driven wiring."""

import sys
from unittest.mock import MagicMock, patch

import pytest

from wms_sync.bootstrap import (
    build_destination_adapter,
    build_pipeline,
    build_service,
    build_source_adapter,
)
from wms_sync.core.adapters import SQLiteAdapter, SQLServerAdapter
from wms_sync.core.errors import MissingConfigError
from wms_sync.core.settings import WmsSyncSettings


class TestAdapters:
    def test_source_requires_host_and_database(self):
        with pytest.raises(MissingConfigError) as exc:
            build_source_adapter(WmsSyncSettings())
        assert exc.value.key == "WMS_SOURCE_HOST"

        with pytest.raises(MissingConfigError) as exc:
            build_source_adapter(WmsSyncSettings(source_host="wms01"))
        assert exc.value.key == "WMS_SOURCE_DATABASE"

    def test_source_adapter(self):
        settings = WmsSyncSettings(
            source_host="wms01", source_database="WMS_VF", source_user="sync", source_password="pw"
        )
        adapter = build_source_adapter(settings)
        assert isinstance(adapter, SQLServerAdapter)
        assert not adapter.is_connected
        assert adapter.config.database == "WMS_VF"

    def test_sqlite_destination_creates_parent_dir(self, tmp_path):
        path = tmp_path / "nested" / "orders.db"
        settings = WmsSyncSettings(database_backend="sqlite", database_path=str(path))

        adapter = build_destination_adapter(settings)

        assert isinstance(adapter, SQLiteAdapter)
        assert path.parent.is_dir()

    def test_mssql_destination_uses_legacy_variables(self, monkeypatch):
        monkeypatch.setenv("DB_SERVER", "sql01")
        monkeypatch.setenv("DB_NAME", "Portal")
        adapter = build_destination_adapter(WmsSyncSettings())
        assert isinstance(adapter, SQLServerAdapter)
        assert adapter.config.host == "sql01"
        assert adapter.config.database == "Portal"

    def test_mssql_destination_requires_server(self):
        with pytest.raises(MissingConfigError) as exc:
            build_destination_adapter(WmsSyncSettings())
        assert exc.value.key == "DB_SERVER"


class TestPipelineAndService:
    def test_build_pipeline_from_settings(self, sqlite_adapter, source_adapter):
        settings = WmsSyncSettings(
            orders_query="SELECT * FROM v_pending",
            orders_table="PendingOrders",
            allowed_order_types="53, 54",
        )
        pipeline = build_pipeline(
            settings, source_adapter=source_adapter, destination_adapter=sqlite_adapter
        )
        assert pipeline.source.query == "SELECT * FROM v_pending"
        assert pipeline.repository.table == "PendingOrders"
        assert pipeline.allowed_order_types == {"53", "54"}

    def test_build_service_registers_orders_job(self, sqlite_adapter, source_adapter):
        settings = WmsSyncSettings(sync_interval_ms=1500)
        pipeline = build_pipeline(
            settings, source_adapter=source_adapter, destination_adapter=sqlite_adapter
        )
        service = build_service(settings, pipeline=pipeline)

        assert service.sync_types == ["orders"]
        assert service.health()["orders"]["scheduler"]["interval_seconds"] == 1.5
