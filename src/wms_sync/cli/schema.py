"""
CLI: ``wms-sync schema``: destination table management.
"""

from __future__ import annotations

import typer

from wms_sync.bootstrap import build_destination_adapter
from wms_sync.cli.utils import console, fail
from wms_sync.core.errors import WmsSyncError
from wms_sync.core.settings import get_settings
from wms_sync.logging import configure_logging
from wms_sync.orders.schema import OrderSchemaGuardian

app = typer.Typer(no_args_is_help=True)


@app.command("ensure")
def ensure_schema() -> None:
    """Create the orders table, missing columns and indexes."""
    configure_logging()
    settings = get_settings()
    try:
        adapter = build_destination_adapter(settings)
        guardian = OrderSchemaGuardian(adapter, settings.orders_table)
        guardian.ensure()
    except WmsSyncError as e:
        fail(e)
    console.print(f"[green]✓[/green] Table {settings.orders_table} is up to date")
