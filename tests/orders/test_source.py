"""Tests for the WMS source fetcher and its procedure fallback."""

from unittest.mock import call, patch

import pytest

from wms_sync.core.errors import DatabaseConnectionError, SourceError, SourceObjectMissingError
from wms_sync.orders.source import OrderSource

PROC_SQL = "EXEC wms_ZemiNarackiZaOdobruvanje @Dali_Broj_Dokument = %(Dali_Broj_Dokument)s"
QUERY = "SELECT * FROM dbo.vwCalendarInboundOrders"


def _invalid_object() -> Exception:
    return Exception(208, b"Invalid object name 'dbo.vwCalendarInboundOrders'.DB-Lib error message 20018")


class TestQueryPath:
    def test_query_rows_returned(self, source_adapter):
        source_adapter.query.return_value = [{"NarID": "1"}]
        source = OrderSource(source_adapter, query=QUERY)
        assert source.fetch_raw_orders() == [{"NarID": "1"}]
        source_adapter.query.assert_called_once_with(QUERY)
        assert source.used_fallback is False

    def test_empty_result_is_fine(self, source_adapter):
        assert OrderSource(source_adapter, query=QUERY).fetch_raw_orders() == []

    def test_missing_object_falls_back_once(self, source_adapter):
        source_adapter.query.side_effect = [_invalid_object(), [{"NarID": "2"}]]
        source = OrderSource(source_adapter, query=QUERY)

        with patch("wms_sync.orders.source.log") as log:
            rows = source.fetch_raw_orders()

        assert rows == [{"NarID": "2"}]
        assert source.used_fallback is True
        assert source_adapter.query.call_args_list == [
            call(QUERY),
            call(PROC_SQL, {"Dali_Broj_Dokument": "D"}),
        ]
        log.warning.assert_called_once()
        assert log.warning.call_args.args[0] == "orders.source.fallback"

    def test_other_failure_is_hard_error(self, source_adapter):
        source_adapter.query.side_effect = Exception(102, b"Incorrect syntax near 'FORM'.")
        with pytest.raises(SourceError):
            OrderSource(source_adapter, query=QUERY).fetch_raw_orders()
        assert source_adapter.query.call_count == 1

    def test_connection_errors_propagate_unchanged(self, source_adapter):
        source_adapter.query.side_effect = DatabaseConnectionError("login timeout")
        with pytest.raises(DatabaseConnectionError):
            OrderSource(source_adapter, query=QUERY).fetch_raw_orders()

    def test_fallback_failure_is_hard_error(self, source_adapter):
        source_adapter.query.side_effect = [_invalid_object(), Exception(2812, b"Could not find stored procedure")]
        with pytest.raises(SourceError) as exc:
            OrderSource(source_adapter, query=QUERY).fetch_raw_orders()
        assert exc.value.context.source_name == "wms_ZemiNarackiZaOdobruvanje"

    def test_custom_classifier(self, source_adapter):
        source_adapter.query.side_effect = [RuntimeError("view gone"), []]
        source = OrderSource(source_adapter, query=QUERY, is_missing_object=lambda e: "gone" in str(e))
        assert source.fetch_raw_orders() == []
        assert source.used_fallback

    def test_adapter_reported_missing_object_falls_back(self, source_adapter):
        source_adapter.query.side_effect = [SourceObjectMissingError("view dropped"), [{"NarID": "4"}]]
        source = OrderSource(source_adapter, query=QUERY)
        assert source.fetch_raw_orders() == [{"NarID": "4"}]
        assert source.used_fallback


class TestProcedurePath:
    def test_no_query_calls_procedure(self, source_adapter):
        source_adapter.query.return_value = [{"NarID": "3"}]
        source = OrderSource(source_adapter)
        assert source.fetch_raw_orders() == [{"NarID": "3"}]
        source_adapter.query.assert_called_once_with(PROC_SQL, {"Dali_Broj_Dokument": "D"})
        assert source.used_fallback is False

    def test_blank_query_calls_procedure(self, source_adapter):
        source = OrderSource(source_adapter, query="   ")
        assert source.query is None
        source.fetch_raw_orders()
        source_adapter.query.assert_called_once_with(PROC_SQL, {"Dali_Broj_Dokument": "D"})

    def test_configured_procedure_and_flag(self, source_adapter):
        OrderSource(
            source_adapter, procedure="dbo.wms_Pending", procedure_param="Flag", document_flag="N"
        ).fetch_raw_orders()
        source_adapter.query.assert_called_once_with(
            "EXEC dbo.wms_Pending @Flag = %(Flag)s", {"Flag": "N"}
        )
