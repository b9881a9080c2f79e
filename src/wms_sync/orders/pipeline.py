"""
One orders sync cycle: ensure schema → fetch → normalize → filter → upsert.

The pipeline itself does not absorb errors; the scheduling layer catches
them at the cycle boundary.  An empty normalized batch skips the upsert
entirely.  After a non-empty upsert ``orders.sync.synced`` is logged with
the count, the completion signal downstream pollers rely on.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import asdict, dataclass

from wms_sync.logging import get_logger, log_step
from wms_sync.orders.normalizer import normalize_records
from wms_sync.orders.repository import OrderRepository
from wms_sync.orders.schema import OrderSchemaGuardian
from wms_sync.orders.source import OrderSource

log = get_logger(__name__)

SYNC_TYPE = "orders"


@dataclass
class SyncResult:
    """Counts for one completed cycle."""

    fetched: int = 0
    normalized: int = 0
    skipped_missing_key: int = 0
    skipped_missing_arrival: int = 0
    skipped_order_type: int = 0
    upserted: int = 0
    used_fallback: bool = False
    duration_ms: float = 0.0

    @property
    def status(self) -> str:
        return "ok" if self.upserted else "empty"

    def record_outcomes(self) -> dict[str, int]:
        """Per-outcome counts for the records metric."""
        return {
            "fetched": self.fetched,
            "upserted": self.upserted,
            "skipped_missing_key": self.skipped_missing_key,
            "skipped_missing_arrival": self.skipped_missing_arrival,
            "skipped_order_type": self.skipped_order_type,
        }

    def to_dict(self) -> dict:
        result = asdict(self)
        result["status"] = self.status
        result["duration_ms"] = round(self.duration_ms, 2)
        return result


class OrdersSyncPipeline:
    """Runs a single orders sync cycle."""

    sync_type = SYNC_TYPE

    def __init__(
        self,
        source: OrderSource,
        guardian: OrderSchemaGuardian,
        repository: OrderRepository,
        allowed_order_types: Iterable[str] = (),
    ):
        self.source = source
        self.guardian = guardian
        self.repository = repository
        self.allowed_order_types = frozenset(allowed_order_types)

    def run(self) -> SyncResult:
        started = time.perf_counter()
        result = SyncResult()
        log.info("orders.sync.start")

        self.guardian.ensure()

        with log_step("orders.fetch", level="debug") as timer:
            rows = self.source.fetch_raw_orders()
            timer.add_metric("rows", len(rows))
        result.fetched = len(rows)
        result.used_fallback = self.source.used_fallback

        normalized = normalize_records(rows)
        result.skipped_missing_key = normalized.skipped_missing_key
        result.skipped_missing_arrival = normalized.skipped_missing_arrival

        orders = normalized.orders
        if self.allowed_order_types:
            kept = [o for o in orders if o.order_type_code in self.allowed_order_types]
            result.skipped_order_type = len(orders) - len(kept)
            orders = kept
        result.normalized = len(orders)

        if orders:
            result.upserted = self.repository.upsert_all(orders)
            log.info("orders.sync.synced", count=result.upserted)

        result.duration_ms = (time.perf_counter() - started) * 1000
        return result


__all__ = ["OrdersSyncPipeline", "SYNC_TYPE", "SyncResult"]
