"""
CLI utility helpers: output formatting and error exits.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from wms_sync.core.errors import WmsSyncError

console = Console()
err_console = Console(stderr=True)


def fail(error: Exception) -> NoReturn:
    """Print an error and exit with status 1."""
    if isinstance(error, WmsSyncError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=1)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_dict(data: Mapping[str, Any], *, title: str = "") -> None:
    """Render a flat mapping as a two-column table."""
    table = Table(title=title or None, show_header=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in data.items():
        table.add_row(str(key), "" if value is None else str(value))
    console.print(table)


def print_table(rows: Sequence[Mapping[str, Any]], columns: Sequence[str], *, title: str = "") -> None:
    """Render rows as a table restricted to ``columns``."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    console.print(table)
