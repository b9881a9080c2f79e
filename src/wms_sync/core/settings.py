"""
Centralized settings for the WMS order sync.

One validated, cached settings object replaces ad-hoc ``os.environ``
lookups scattered across the pipeline.  Values come from ``WMS_*``
environment variables or a ``.env`` file; the destination connection also
honours the legacy ``DB_SERVER``/``DB_USER``/``DB_PASS``/``DB_NAME``/``DB_PORT``
variables the surrounding application already uses.

Tags:
    wms-sync, configuration, settings, pydantic, caching, validation
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class DatabaseBackend(str, Enum):
    """Destination store backends."""

    MSSQL = "mssql"
    SQLITE = "sqlite"


class WmsSyncSettings(BaseSettings):
    """WMS sync configuration.

    Fields
    ──────
    sync_interval_ms       : Order sync interval (default five minutes)
    orders_query           : Optional ad-hoc query against the WMS source
    orders_procedure       : Stored procedure used when no query is set or
                             the query target does not exist
    orders_procedure_param : Name of the procedure's document-flag parameter
    document_flag          : Value passed as the document flag
    allowed_order_types    : Order type codes admitted (empty = all)
    """

    model_config = SettingsConfigDict(
        env_prefix="WMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── Scheduling ───────────────────────────────────────────────
    sync_interval_ms: int = Field(default=5 * 60 * 1000, gt=0)

    # ── Source query / procedure ─────────────────────────────────
    orders_query: str | None = Field(default=None)
    orders_procedure: str = Field(default="wms_ZemiNarackiZaOdobruvanje")
    orders_procedure_param: str = Field(default="Dali_Broj_Dokument")
    document_flag: str = Field(default="D", min_length=1, max_length=1)
    allowed_order_types: Annotated[list[str], NoDecode] = Field(default_factory=list)

    # ── Source connection (WMS SQL Server) ───────────────────────
    source_host: str | None = Field(default=None)
    source_port: int = Field(default=1433)
    source_user: str | None = Field(default=None)
    source_password: str | None = Field(default=None)
    source_database: str | None = Field(default=None)

    # ── Destination ──────────────────────────────────────────────
    database_backend: DatabaseBackend = Field(default=DatabaseBackend.MSSQL)
    database_path: str = Field(default="data/wms_sync.db")
    orders_table: str = Field(default="WmsOrders", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")

    db_server: str | None = Field(
        default=None, validation_alias=AliasChoices("WMS_DB_SERVER", "DB_SERVER")
    )
    db_port: int = Field(default=1433, validation_alias=AliasChoices("WMS_DB_PORT", "DB_PORT"))
    db_user: str | None = Field(default=None, validation_alias=AliasChoices("WMS_DB_USER", "DB_USER"))
    db_password: str | None = Field(
        default=None, validation_alias=AliasChoices("WMS_DB_PASSWORD", "DB_PASS")
    )
    db_name: str | None = Field(default=None, validation_alias=AliasChoices("WMS_DB_NAME", "DB_NAME"))

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @field_validator("orders_query", mode="before")
    @classmethod
    def _blank_query_is_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("allowed_order_types", mode="before")
    @classmethod
    def _split_order_types(cls, value: object) -> object:
        if isinstance(value, str):
            return [code.strip() for code in value.split(",") if code.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    # ── Derived properties ───────────────────────────────────────

    @property
    def sync_interval_seconds(self) -> float:
        return self.sync_interval_ms / 1000.0

    @property
    def is_sqlite(self) -> bool:
        return self.database_backend == DatabaseBackend.SQLITE

    def masked(self) -> dict[str, object]:
        """Settings as a dict with secrets replaced, for display."""
        data = self.model_dump(mode="json")
        for key in ("source_password", "db_password"):
            if data.get(key):
                data[key] = "********"
        return data


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, WmsSyncSettings] = {}


def get_settings(*, _force_reload: bool = False) -> WmsSyncSettings:
    """Load, validate, and cache a :class:`WmsSyncSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = WmsSyncSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "DatabaseBackend",
    "WmsSyncSettings",
    "get_settings",
    "clear_settings_cache",
]
