"""
Root Typer application for the wms-sync CLI.
"""

from __future__ import annotations

import typer
from typer import Typer

from wms_sync import __version__

app = Typer(
    name="wms-sync",
    help="wms-sync: pending-order synchronization from the WMS.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"wms-sync {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """wms-sync CLI: run the sync, inspect orders and configuration."""


from wms_sync.cli.config import app as config_app  # noqa: E402
from wms_sync.cli.orders import app as orders_app  # noqa: E402
from wms_sync.cli.schema import app as schema_app  # noqa: E402
from wms_sync.cli.sync import run_once, run_service  # noqa: E402

app.command("run")(run_service)
app.command("once")(run_once)
app.add_typer(schema_app, name="schema", help="Destination schema.")
app.add_typer(orders_app, name="orders", help="Synced orders.")
app.add_typer(config_app, name="config", help="Configuration.")
