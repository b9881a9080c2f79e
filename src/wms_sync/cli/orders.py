"""
CLI: ``wms-sync orders``: inspect synced orders.
"""

from __future__ import annotations

import typer

from wms_sync.bootstrap import build_destination_adapter
from wms_sync.cli.utils import fail, print_json, print_table
from wms_sync.core.errors import WmsSyncError
from wms_sync.core.settings import get_settings
from wms_sync.orders.repository import OrderRepository

app = typer.Typer(no_args_is_help=True)

LIST_COLUMNS = (
    "order_key",
    "order_number",
    "importer",
    "article",
    "box_count",
    "pallet_count",
    "arrival_date",
    "last_synced_at",
)


@app.command("list")
def list_orders(
    limit: int = typer.Option(50, "--limit", "-n", min=1, help="Max rows"),
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List stored orders by expected date."""
    settings = get_settings()
    try:
        repo = OrderRepository(build_destination_adapter(settings), settings.orders_table)
        orders = repo.list_orders(limit)
    except WmsSyncError as e:
        fail(e)

    rows = [o.to_dict() for o in orders]
    if as_json:
        print_json(rows)
    else:
        print_table(rows, LIST_COLUMNS, title=f"{settings.orders_table} ({len(rows)})")
