"""SQL dialect abstraction for the destination and source databases.

The order repository, schema guardian and source fetcher never write
vendor-specific SQL directly.  They ask a ``Dialect`` for fragments and full
statements (named parameters, server timestamps, column DDL, the
merge-by-key statement) and for the classification of driver errors.

Architecture::

    ┌──────────────────────────────────────────────────────────────────┐
    │                     Dialect Abstraction Layer                     │
    └──────────────────────────────────────────────────────────────────┘

    Domain Code:
    ┌────────────────────────────────────────────────────────────────┐
    │  sql = d.upsert_by_key(table, "NarID", columns, "LastSyncedAt")│
    │  conn.execute(sql, {name: d.adapt_value(v) ...})               │
    └────────────────────────────────────────────────────────────────┘
                              │
                              ▼
    ┌─────────────────────────────┐  ┌──────────────────────────────┐
    │ SQLite (dev/tests)          │  │ SQL Server (production)       │
    │ :name                       │  │ %(name)s                      │
    │ strftime(...,'now')         │  │ SYSUTCDATETIME()              │
    │ INSERT … ON CONFLICT        │  │ MERGE … WITH (HOLDLOCK)       │
    └─────────────────────────────┘  └──────────────────────────────┘

Examples:
    >>> from wms_sync.core.dialect import SQLiteDialect
    >>> d = SQLiteDialect()
    >>> d.param("NarID")
    ':NarID'
    >>> d.now()
    "strftime('%Y-%m-%d %H:%M:%f', 'now')"

Guardrails:
    ❌ DON'T: Write backend-specific SQL in the orders package
    ✅ DO: Add a Dialect method and implement it for every backend

Tags:
    dialect, sql, abstraction, portability, database, wms-sync
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from wms_sync.core.errors import ConfigError, QueryError

if TYPE_CHECKING:
    from wms_sync.orders.models import ColumnSpec


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Statement builders return full SQL using *named* parameters so callers
    can bind one ``dict`` regardless of backend paramstyle.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def quote(self, identifier: str) -> str:
        """Quote a table/column identifier."""
        ...

    def table_ref(self, table: str) -> str:
        """Schema-qualified, quoted table reference."""
        ...

    def param(self, name: str) -> str:
        """Named parameter placeholder."""
        ...

    def now(self) -> str:
        """SQL expression for the server's current UTC timestamp."""
        ...

    def column_type(self, column: ColumnSpec) -> str:
        """DDL type for a logical column."""
        ...

    def table_exists_query(self) -> str:
        """Query returning one row when the table bound to ``table`` exists."""
        ...

    def columns_query(self) -> str:
        """Query returning a ``name`` column for each column of ``table``."""
        ...

    def create_table(self, table: str, columns: list[ColumnSpec]) -> str:
        """``CREATE TABLE`` statement with a primary key constraint."""
        ...

    def add_column(self, table: str, column: ColumnSpec) -> str:
        """``ALTER TABLE … ADD`` statement; the column is always NULL-able."""
        ...

    def create_index_if_missing(self, index: str, table: str, column: str) -> str:
        """Idempotent single-column index creation."""
        ...

    def upsert_by_key(
        self,
        table: str,
        key_column: str,
        columns: list[str],
        synced_column: str,
    ) -> str:
        """Merge one row by ``key_column``.

        ``columns`` are bound by name.  ``synced_column`` is set to server
        time on insert and, on update, to the later of server time and the
        previous value plus one clock tick, so it strictly increases per key.
        """
        ...

    def select_ordered(
        self, table: str, columns: list[str], order_by: list[str], limit_param: str
    ) -> str:
        """``SELECT`` the first rows by ``order_by``; row limit bound by name."""
        ...

    def call_procedure(self, procedure: str, param_name: str) -> str:
        """Call a stored procedure with one named parameter."""
        ...

    def adapt_value(self, value: Any) -> Any:
        """Convert a Python value to something the driver binds natively."""
        ...

    def parse_datetime(self, value: Any) -> datetime | None:
        """Convert a datetime read back from the driver."""
        ...

    def is_missing_object_error(self, error: BaseException) -> bool:
        """Whether ``error`` means a referenced table/view does not exist."""
        ...


# =============================================================================
# SQLite
# =============================================================================


class SQLiteDialect:
    """SQLite dialect (development and tests)."""

    _TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%f"

    @property
    def name(self) -> str:
        return "sqlite"

    def quote(self, identifier: str) -> str:
        return f'"{identifier}"'

    def table_ref(self, table: str) -> str:
        return self.quote(table)

    def param(self, name: str) -> str:
        return f":{name}"

    def now(self) -> str:
        return f"strftime('{self._TIMESTAMP_FORMAT}', 'now')"

    def column_type(self, column: ColumnSpec) -> str:
        match column.kind:
            case "string":
                return f"TEXT CHECK (length({self.quote(column.name)}) <= {column.length})"
            case "integer" | "boolean":
                return "INTEGER"
            case "decimal":
                return f"NUMERIC({column.precision}, {column.scale})"
            case "datetime":
                return "TEXT"
            case _:
                raise ConfigError(f"Unsupported column kind: {column.kind}")

    def table_exists_query(self) -> str:
        return "SELECT name FROM sqlite_master WHERE type = 'table' AND name = :table"

    def columns_query(self) -> str:
        return "SELECT name FROM pragma_table_info(:table)"

    def create_table(self, table: str, columns: list[ColumnSpec]) -> str:
        defs = [self._column_def(column, allow_not_null=True) for column in columns]
        keys = [self.quote(c.name) for c in columns if c.primary_key]
        defs.append(f"PRIMARY KEY ({', '.join(keys)})")
        body = ",\n    ".join(defs)
        return f"CREATE TABLE IF NOT EXISTS {self.quote(table)} (\n    {body}\n)"

    def add_column(self, table: str, column: ColumnSpec) -> str:
        return (
            f"ALTER TABLE {self.quote(table)} ADD COLUMN "
            f"{self._column_def(column, allow_not_null=False)}"
        )

    def create_index_if_missing(self, index: str, table: str, column: str) -> str:
        return (
            f"CREATE INDEX IF NOT EXISTS {self.quote(index)} "
            f"ON {self.quote(table)} ({self.quote(column)})"
        )

    def upsert_by_key(
        self,
        table: str,
        key_column: str,
        columns: list[str],
        synced_column: str,
    ) -> str:
        quoted_table = self.quote(table)
        insert_cols = ", ".join(self.quote(c) for c in [*columns, synced_column])
        values = ", ".join([*(self.param(c) for c in columns), self.now()])
        updates = [
            f"{self.quote(c)} = excluded.{self.quote(c)}" for c in columns if c != key_column
        ]
        synced = self.quote(synced_column)
        updates.append(
            f"{synced} = MAX({self.now()}, COALESCE("
            f"strftime('{self._TIMESTAMP_FORMAT}', {quoted_table}.{synced}, '+0.001 seconds'), "
            f"{self.now()}))"
        )
        return (
            f"INSERT INTO {quoted_table} ({insert_cols}) VALUES ({values}) "
            f"ON CONFLICT ({self.quote(key_column)}) DO UPDATE SET " + ", ".join(updates)
        )

    def select_ordered(
        self, table: str, columns: list[str], order_by: list[str], limit_param: str
    ) -> str:
        cols = ", ".join(self.quote(c) for c in columns)
        order = ", ".join(self.quote(c) for c in order_by)
        return (
            f"SELECT {cols} FROM {self.table_ref(table)} "
            f"ORDER BY {order} LIMIT {self.param(limit_param)}"
        )

    def call_procedure(self, procedure: str, param_name: str) -> str:
        raise QueryError(f"SQLite has no stored procedures (requested {procedure})")

    def adapt_value(self, value: Any) -> Any:
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, Decimal):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ", timespec="microseconds")
        if isinstance(value, date):
            return value.isoformat()
        return value

    def parse_datetime(self, value: Any) -> datetime | None:
        if value is None or isinstance(value, datetime):
            return value
        return datetime.fromisoformat(str(value))

    def is_missing_object_error(self, error: BaseException) -> bool:
        return "no such table" in str(error).lower()

    def _column_def(self, column: ColumnSpec, *, allow_not_null: bool) -> str:
        sql = f"{self.quote(column.name)} {self.column_type(column)}"
        if allow_not_null and not column.nullable:
            sql += " NOT NULL"
        return sql


# =============================================================================
# SQL Server
# =============================================================================


class SQLServerDialect:
    """Microsoft SQL Server dialect (pymssql, ``pyformat`` parameters)."""

    # 208: Invalid object name
    MISSING_OBJECT_ERROR_CODES = frozenset({208})

    @property
    def name(self) -> str:
        return "mssql"

    def quote(self, identifier: str) -> str:
        return f"[{identifier}]"

    def table_ref(self, table: str) -> str:
        return f"dbo.{self.quote(table)}"

    def param(self, name: str) -> str:
        return f"%({name})s"

    def now(self) -> str:
        return "SYSUTCDATETIME()"

    def column_type(self, column: ColumnSpec) -> str:
        match column.kind:
            case "string":
                return f"NVARCHAR({column.length})"
            case "integer":
                return "INT"
            case "boolean":
                return "BIT"
            case "decimal":
                return f"DECIMAL({column.precision}, {column.scale})"
            case "datetime":
                return "DATETIME2"
            case _:
                raise ConfigError(f"Unsupported column kind: {column.kind}")

    def table_exists_query(self) -> str:
        return "SELECT 1 AS present FROM sys.tables WHERE name = %(table)s"

    def columns_query(self) -> str:
        return "SELECT name FROM sys.columns WHERE object_id = OBJECT_ID(%(table)s)"

    def create_table(self, table: str, columns: list[ColumnSpec]) -> str:
        defs = [self._column_def(column, allow_not_null=True) for column in columns]
        keys = [self.quote(c.name) for c in columns if c.primary_key]
        defs.append(f"CONSTRAINT {self.quote('PK_' + table)} PRIMARY KEY ({', '.join(keys)})")
        body = ",\n    ".join(defs)
        return (
            f"IF OBJECT_ID(N'dbo.{table}', N'U') IS NULL\n"
            f"CREATE TABLE dbo.{self.quote(table)} (\n    {body}\n)"
        )

    def add_column(self, table: str, column: ColumnSpec) -> str:
        return (
            f"ALTER TABLE dbo.{self.quote(table)} ADD "
            f"{self._column_def(column, allow_not_null=False)}"
        )

    def create_index_if_missing(self, index: str, table: str, column: str) -> str:
        return (
            f"IF NOT EXISTS (SELECT 1 FROM sys.indexes WHERE name = N'{index}' "
            f"AND object_id = OBJECT_ID(N'dbo.{table}'))\n"
            f"CREATE INDEX {self.quote(index)} ON dbo.{self.quote(table)} ({self.quote(column)})"
        )

    def upsert_by_key(
        self,
        table: str,
        key_column: str,
        columns: list[str],
        synced_column: str,
    ) -> str:
        key = self.quote(key_column)
        synced = self.quote(synced_column)
        updates = [
            f"{self.quote(c)} = {self.param(c)}" for c in columns if c != key_column
        ]
        updates.append(
            f"{synced} = CASE WHEN target.{synced} IS NULL OR {self.now()} > target.{synced} "
            f"THEN {self.now()} "
            f"ELSE DATEADD(MICROSECOND, 1, target.{synced}) END"
        )
        insert_cols = ", ".join(self.quote(c) for c in [*columns, synced_column])
        values = ", ".join([*(self.param(c) for c in columns), self.now()])
        return (
            f"MERGE dbo.{self.quote(table)} WITH (HOLDLOCK) AS target\n"
            f"USING (SELECT {self.param(key_column)} AS {key}) AS source\n"
            f"ON target.{key} = source.{key}\n"
            f"WHEN MATCHED THEN\n  UPDATE SET " + ",\n    ".join(updates) + "\n"
            f"WHEN NOT MATCHED THEN\n  INSERT ({insert_cols})\n  VALUES ({values});"
        )

    def select_ordered(
        self, table: str, columns: list[str], order_by: list[str], limit_param: str
    ) -> str:
        cols = ", ".join(self.quote(c) for c in columns)
        order = ", ".join(self.quote(c) for c in order_by)
        return (
            f"SELECT TOP ({self.param(limit_param)}) {cols} "
            f"FROM {self.table_ref(table)} ORDER BY {order}"
        )

    def call_procedure(self, procedure: str, param_name: str) -> str:
        return f"EXEC {procedure} @{param_name} = {self.param(param_name)}"

    def adapt_value(self, value: Any) -> Any:
        return value

    def parse_datetime(self, value: Any) -> datetime | None:
        if value is None or isinstance(value, datetime):
            return value
        return datetime.fromisoformat(str(value))

    def is_missing_object_error(self, error: BaseException) -> bool:
        args = getattr(error, "args", ())
        if args and isinstance(args[0], int) and args[0] in self.MISSING_OBJECT_ERROR_CODES:
            return True
        return "invalid object name" in str(error).lower()

    def _column_def(self, column: ColumnSpec, *, allow_not_null: bool) -> str:
        nullability = "NOT NULL" if allow_not_null and not column.nullable else "NULL"
        return f"{self.quote(column.name)} {self.column_type(column)} {nullability}"


# =============================================================================
# Registry
# =============================================================================


_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "mssql": SQLServerDialect(),
    "sqlserver": SQLServerDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Return the dialect registered under ``db_type``.

    Raises:
        ConfigError: If no dialect is registered for the name.
    """
    try:
        return _DIALECTS[db_type.lower()]
    except KeyError:
        raise ConfigError(f"No SQL dialect registered for: {db_type}") from None


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "SQLServerDialect",
    "get_dialect",
]
