"""Tests for the structured error hierarchy."""

import pytest

from wms_sync.core.errors import (
    ConfigError,
    ConstraintError,
    DatabaseConnectionError,
    ErrorCategory,
    MissingConfigError,
    SchemaEnsureError,
    SourceError,
    SourceObjectMissingError,
    UpsertError,
    WmsSyncError,
    categorize_error,
)


class TestWmsSyncError:
    def test_defaults(self):
        err = WmsSyncError("boom")
        assert err.message == "boom"
        assert err.category == ErrorCategory.INTERNAL
        assert err.retryable is False
        assert err.cause is None

    def test_cause_is_chained(self):
        original = RuntimeError("driver said no")
        err = SourceError("fetch failed", cause=original)
        assert err.__cause__ is original
        assert err.to_dict()["cause"] == "driver said no"

    def test_with_context_known_and_extra_keys(self):
        err = UpsertError("batch failed").with_context(table="WmsOrders", record_count=12)
        assert err.context.table == "WmsOrders"
        assert err.context.metadata == {"record_count": 12}

    def test_to_dict(self):
        err = UpsertError("batch failed").with_context(table="WmsOrders", record_count=3)
        data = err.to_dict()
        assert data["error_type"] == "UpsertError"
        assert data["category"] == "DATABASE"
        assert data["retryable"] is True
        assert data["context"] == {"table": "WmsOrders", "record_count": 3}

    def test_overrides(self):
        err = SourceError("x", category=ErrorCategory.NETWORK, retryable=True)
        assert err.category == ErrorCategory.NETWORK
        assert err.retryable is True
        assert err.to_dict()["retryable"] is True


class TestSubclasses:
    @pytest.mark.parametrize(
        ("cls", "category", "retryable"),
        [
            (DatabaseConnectionError, ErrorCategory.DATABASE, True),
            (SourceError, ErrorCategory.SOURCE, False),
            (SourceObjectMissingError, ErrorCategory.SOURCE, False),
            (SchemaEnsureError, ErrorCategory.DATABASE, True),
            (UpsertError, ErrorCategory.DATABASE, True),
            (ConfigError, ErrorCategory.CONFIG, False),
        ],
    )
    def test_category_and_retry(self, cls, category, retryable):
        err = cls("x")
        assert err.category == category
        assert err.retryable is retryable
        assert isinstance(err, WmsSyncError)

    def test_constraint_error_fields(self):
        err = ConstraintError("too long", field="Comment", value="x" * 5, constraint="length<=1000")
        data = err.to_dict()
        assert data["category"] == "VALIDATION"
        assert data["field"] == "Comment"
        assert data["constraint"] == "length<=1000"

    def test_missing_config(self):
        err = MissingConfigError("DB_SERVER")
        assert err.key == "DB_SERVER"
        assert "DB_SERVER" in str(err)


class TestHelpers:
    def test_categorize(self):
        assert categorize_error(SourceError("x")) == ErrorCategory.SOURCE
        assert categorize_error(ConnectionError()) == ErrorCategory.NETWORK
        assert categorize_error(ValueError()) == ErrorCategory.VALIDATION
        assert categorize_error(KeyError("k")) == ErrorCategory.UNKNOWN
