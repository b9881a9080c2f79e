"""
Source fetcher for pending WMS orders.

Prefers an operator-configured ad-hoc query.  When that query references an
object the WMS does not have (a view renamed or dropped on their side), the
fetcher logs a warning and calls the stored procedure once instead.  With no
query configured it calls the procedure directly.  Any other failure is a
hard :class:`SourceError` that aborts the cycle.

Whether an error means "object missing" is decided by a pluggable
classifier, defaulting to the adapter dialect's
``is_missing_object_error`` (SQL Server error 208, SQLite "no such table").

Tags:
    wms-sync, source, fallback, stored-procedure
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from wms_sync.core.adapters import DatabaseAdapter
from wms_sync.core.errors import SourceError, SourceObjectMissingError, WmsSyncError
from wms_sync.logging import get_logger

log = get_logger(__name__)

MissingObjectClassifier = Callable[[BaseException], bool]

DEFAULT_PROCEDURE = "wms_ZemiNarackiZaOdobruvanje"
DEFAULT_PROCEDURE_PARAM = "Dali_Broj_Dokument"
DEFAULT_DOCUMENT_FLAG = "D"


class OrderSource:
    """Fetches raw pending-order rows from the WMS."""

    def __init__(
        self,
        adapter: DatabaseAdapter,
        *,
        query: str | None = None,
        procedure: str = DEFAULT_PROCEDURE,
        procedure_param: str = DEFAULT_PROCEDURE_PARAM,
        document_flag: str = DEFAULT_DOCUMENT_FLAG,
        is_missing_object: MissingObjectClassifier | None = None,
    ):
        self._adapter = adapter
        self._query = query.strip() if query and query.strip() else None
        self._procedure = procedure
        self._procedure_param = procedure_param
        self._document_flag = document_flag
        self._is_missing_object = is_missing_object or adapter.dialect.is_missing_object_error
        self.used_fallback = False

    @property
    def query(self) -> str | None:
        return self._query

    @property
    def procedure(self) -> str:
        return self._procedure

    def fetch_raw_orders(self) -> list[dict[str, Any]]:
        """Return the source row set (possibly empty)."""
        self.used_fallback = False

        if self._query is None:
            return self._call_procedure()

        try:
            return self._run_query(self._query)
        except SourceObjectMissingError as e:
            log.warning(
                "orders.source.fallback",
                procedure=self._procedure,
                reason=str(e.cause or e),
            )
            self.used_fallback = True

        return self._call_procedure()

    def _run_query(self, query: str) -> list[dict[str, Any]]:
        try:
            return self._adapter.query(query)
        except WmsSyncError:
            raise
        except Exception as e:
            if self._is_missing_object(e):
                raise SourceObjectMissingError(
                    f"WMS order query target is missing: {e}", cause=e
                ).with_context(source_name="query") from e
            raise SourceError(f"WMS order query failed: {e}", cause=e).with_context(
                source_name="query"
            ) from e

    def _call_procedure(self) -> list[dict[str, Any]]:
        sql = self._adapter.dialect.call_procedure(self._procedure, self._procedure_param)
        try:
            return self._adapter.query(sql, {self._procedure_param: self._document_flag})
        except WmsSyncError:
            raise
        except Exception as e:
            raise SourceError(
                f"WMS procedure {self._procedure} failed: {e}", cause=e
            ).with_context(source_name=self._procedure) from e


__all__ = [
    "DEFAULT_DOCUMENT_FLAG",
    "DEFAULT_PROCEDURE",
    "DEFAULT_PROCEDURE_PARAM",
    "MissingObjectClassifier",
    "OrderSource",
]
