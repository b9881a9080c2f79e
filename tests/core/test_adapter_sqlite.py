"""Tests for SQLiteAdapter."""

import pytest

from wms_sync.core.adapters import DatabaseType, SQLiteAdapter
from wms_sync.core.dialect import SQLiteDialect


class TestSQLiteAdapter:
    def test_defaults(self):
        adapter = SQLiteAdapter()
        assert adapter.db_type == DatabaseType.SQLITE
        assert isinstance(adapter.dialect, SQLiteDialect)
        assert adapter.config.to_connection_string() == ":memory:"
        assert not adapter.is_connected

    def test_context_manager(self):
        with SQLiteAdapter() as adapter:
            assert adapter.is_connected
            assert adapter.query_one("SELECT 1 AS one") == {"one": 1}
        assert not adapter.is_connected

    def test_lazy_connect(self):
        adapter = SQLiteAdapter()
        assert adapter.query("SELECT 2 AS two") == [{"two": 2}]
        adapter.disconnect()

    def test_execute_and_query(self, sqlite_adapter):
        sqlite_adapter.execute("CREATE TABLE t (k TEXT PRIMARY KEY, v INTEGER)")
        assert sqlite_adapter.execute("INSERT INTO t VALUES (:k, :v)", {"k": "a", "v": 1}) == 1
        assert sqlite_adapter.query("SELECT k, v FROM t") == [{"k": "a", "v": 1}]
        assert sqlite_adapter.query_one("SELECT k FROM t WHERE k = :k", {"k": "zz"}) is None

    def test_transaction_commits(self, sqlite_adapter):
        sqlite_adapter.execute("CREATE TABLE t (k TEXT PRIMARY KEY)")
        with sqlite_adapter.transaction() as cursor:
            cursor.execute("INSERT INTO t VALUES ('a')")
            cursor.execute("INSERT INTO t VALUES ('b')")
        assert len(sqlite_adapter.query("SELECT k FROM t")) == 2

    def test_transaction_rolls_back_everything(self, sqlite_adapter):
        sqlite_adapter.execute("CREATE TABLE t (k TEXT PRIMARY KEY)")
        with pytest.raises(Exception):
            with sqlite_adapter.transaction() as cursor:
                cursor.execute("INSERT INTO t VALUES ('a')")
                cursor.execute("INSERT INTO t VALUES ('a')")
        assert sqlite_adapter.query("SELECT k FROM t") == []

    def test_ddl_rolls_back_too(self, sqlite_adapter):
        with pytest.raises(RuntimeError):
            with sqlite_adapter.transaction() as cursor:
                cursor.execute("CREATE TABLE t (k TEXT)")
                raise RuntimeError("abort")
        assert sqlite_adapter.query("SELECT name FROM sqlite_master WHERE name = 't'") == []

    def test_readonly(self, tmp_path):
        path = str(tmp_path / "ro.db")
        with SQLiteAdapter(path) as writer:
            writer.execute("CREATE TABLE t (k TEXT)")
        with SQLiteAdapter(path, readonly=True) as reader:
            with pytest.raises(Exception):
                reader.execute("INSERT INTO t VALUES ('a')")
