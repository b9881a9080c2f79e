"""
CLI: ``wms-sync run`` and ``wms-sync once``.
"""

from __future__ import annotations

import threading

import typer

from wms_sync.bootstrap import build_pipeline, build_service
from wms_sync.cli.utils import console, fail, print_dict, print_json
from wms_sync.core.errors import WmsSyncError
from wms_sync.logging import configure_logging
from wms_sync.observability.metrics import SyncMetrics
from wms_sync.orders.pipeline import SYNC_TYPE
from wms_sync.scheduling import SyncJob


def _block_until_interrupted() -> None:
    stop = threading.Event()
    while not stop.wait(1.0):
        pass


def run_service() -> None:
    """Sync immediately, then on the configured interval until Ctrl-C."""
    configure_logging()
    try:
        service = build_service()
    except WmsSyncError as e:
        fail(e)

    service.start()
    console.print(f"[green]Sync running[/green] for: {', '.join(service.sync_types)} (Ctrl-C to stop)")
    try:
        _block_until_interrupted()
    except KeyboardInterrupt:
        console.print("[yellow]Stopping; waiting for the running cycle to finish...[/yellow]")
    finally:
        service.stop(wait=True)


def run_once(
    as_json: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Run one orders sync cycle and print its result."""
    configure_logging()
    try:
        pipeline = build_pipeline()
    except WmsSyncError as e:
        fail(e)

    outcome = SyncJob(SYNC_TYPE, pipeline.run, metrics=SyncMetrics()).run_now("manual")
    data = outcome.to_dict()

    if as_json:
        print_json(data)
    else:
        summary = {k: v for k, v in data.items() if k not in ("result", "error")}
        summary.update(data.get("result", {}))
        if "error" in data:
            summary["error"] = data["error"].get("message")
        print_dict(summary, title="Orders sync")

    if outcome.status == "failed":
        raise typer.Exit(code=1)
