"""
CLI: ``wms-sync config``: configuration inspection.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from wms_sync.cli.utils import fail, print_dict, print_json

app = typer.Typer(no_args_is_help=True)


@app.command("show")
def show_config(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show effective settings with secrets masked."""
    from wms_sync.core.settings import get_settings

    try:
        settings = get_settings(_force_reload=True)
    except ValidationError as e:
        fail(e)

    data = settings.masked()
    if as_json:
        print_json(data)
    else:
        print_dict(data, title="wms-sync settings")
