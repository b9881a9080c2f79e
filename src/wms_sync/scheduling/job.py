"""
Sync job: one sync type's busy guard and cycle boundary.

At most one cycle per job runs at a time.  A trigger that arrives while a
cycle is running is skipped, not queued: the busy lock is taken without
blocking before the cycle starts and released in a ``finally`` when it ends,
whichever thread ran it.

Every error raised by a cycle is absorbed here, logged as
``sync.cycle.failed`` with the error's structured context, and counted.
The job always returns to idle, so the next trigger runs normally.

::

    trigger ──▶ busy.acquire(blocking=False)
                   │ False ──▶ sync.cycle.skipped_busy
                   ▼ True
                run cycle ──error──▶ sync.cycle.failed
                   │
                finally: busy.release()

Tags:
    wms-sync, scheduling, overlap, error-boundary
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from wms_sync.core.errors import WmsSyncError, categorize_error
from wms_sync.logging import clear_context, get_logger, new_cycle_id, set_context
from wms_sync.observability.metrics import SyncMetrics

log = get_logger(__name__)

CycleCallable = Callable[[], Any]


@dataclass
class CycleOutcome:
    """What happened to one trigger."""

    sync_type: str
    trigger: str
    status: str  # ok, empty, failed, skipped
    cycle_id: str | None = None
    result: Any = None
    error: BaseException | None = None
    duration_ms: float = 0.0

    @property
    def ran(self) -> bool:
        return self.status != "skipped"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sync_type": self.sync_type,
            "trigger": self.trigger,
            "status": self.status,
            "cycle_id": self.cycle_id,
            "duration_ms": round(self.duration_ms, 2),
        }
        if self.result is not None and hasattr(self.result, "to_dict"):
            data["result"] = self.result.to_dict()
        if self.error is not None:
            data["error"] = _error_dict(self.error)
        return data


@dataclass
class JobHealth:
    """Counters and last-run state for one job."""

    sync_type: str
    running: bool = False
    runs: int = 0
    failures: int = 0
    skips: int = 0
    last_run: datetime | None = None
    last_status: str | None = None
    last_error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sync_type": self.sync_type,
            "running": self.running,
            "runs": self.runs,
            "failures": self.failures,
            "skips": self.skips,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "last_status": self.last_status,
            "last_error": self.last_error,
            **self.extra,
        }


def _error_dict(error: BaseException) -> dict[str, Any]:
    if isinstance(error, WmsSyncError):
        return error.to_dict()
    return {
        "error_type": type(error).__name__,
        "message": str(error),
        "category": categorize_error(error).value,
    }


class SyncJob:
    """Runs cycles of one sync type with overlap suppression.

    Example:
        >>> job = SyncJob("orders", pipeline.run)
        >>> job.run_now().status
        'ok'
    """

    def __init__(
        self,
        sync_type: str,
        cycle: CycleCallable,
        *,
        metrics: SyncMetrics | None = None,
    ):
        self.sync_type = sync_type
        self._cycle = cycle
        self._metrics = metrics
        self._busy = threading.Lock()
        self._state_lock = threading.Lock()
        self._health = JobHealth(sync_type=sync_type)
        self._worker: threading.Thread | None = None

    @property
    def is_running(self) -> bool:
        return self._busy.locked()

    def health(self) -> JobHealth:
        with self._state_lock:
            snapshot = JobHealth(**{**self._health.__dict__, "extra": dict(self._health.extra)})
        snapshot.running = self.is_running
        return snapshot

    def run_now(self, trigger: str = "manual") -> CycleOutcome:
        """Run one cycle in the calling thread unless one is already running."""
        if not self._busy.acquire(blocking=False):
            return self._skipped(trigger)
        try:
            return self._execute(trigger)
        finally:
            self._busy.release()

    def dispatch(self, trigger: str = "interval") -> threading.Thread | None:
        """Start one cycle on a worker thread; ``None`` if skipped as busy."""
        if not self._busy.acquire(blocking=False):
            self._skipped(trigger)
            return None

        def _work() -> None:
            try:
                self._execute(trigger)
            finally:
                self._busy.release()

        try:
            worker = threading.Thread(
                target=_work, daemon=True, name=f"wms-sync-{self.sync_type}-cycle"
            )
            worker.start()
        except BaseException:
            self._busy.release()
            raise
        self._worker = worker
        return worker

    def wait_idle(self, timeout: float | None = None) -> bool:
        """Block until no cycle is running; ``False`` on timeout."""
        acquired = self._busy.acquire(timeout=-1 if timeout is None else timeout)
        if acquired:
            self._busy.release()
        return acquired

    def _skipped(self, trigger: str) -> CycleOutcome:
        log.info("sync.cycle.skipped_busy", sync_type=self.sync_type, trigger=trigger)
        with self._state_lock:
            self._health.skips += 1
        if self._metrics:
            self._metrics.record_cycle(self.sync_type, "skipped", 0.0)
        return CycleOutcome(sync_type=self.sync_type, trigger=trigger, status="skipped")

    def _execute(self, trigger: str) -> CycleOutcome:
        cycle_id = new_cycle_id()
        clear_context()
        set_context(sync_type=self.sync_type, cycle_id=cycle_id, trigger=trigger)
        if self._metrics:
            self._metrics.running.labels(sync_type=self.sync_type).set(1)

        started = time.perf_counter()
        outcome = CycleOutcome(sync_type=self.sync_type, trigger=trigger, status="ok", cycle_id=cycle_id)
        try:
            outcome.result = self._cycle()
            outcome.status = getattr(outcome.result, "status", "ok")
        except Exception as e:
            outcome.status = "failed"
            outcome.error = e
            if isinstance(e, WmsSyncError):
                e.with_context(sync_type=self.sync_type, cycle_id=cycle_id)
            log.error(
                "sync.cycle.failed",
                error_type=type(e).__name__,
                message=str(e),
                error=_error_dict(e),
            )
        finally:
            outcome.duration_ms = (time.perf_counter() - started) * 1000
            self._finish(outcome)
            clear_context()
        return outcome

    def _finish(self, outcome: CycleOutcome) -> None:
        with self._state_lock:
            self._health.runs += 1
            self._health.last_run = datetime.now(UTC)
            self._health.last_status = outcome.status
            if outcome.error is not None:
                self._health.failures += 1
                self._health.last_error = str(outcome.error)
            else:
                self._health.last_error = None

        if self._metrics:
            records = None
            if outcome.result is not None and hasattr(outcome.result, "record_outcomes"):
                records = outcome.result.record_outcomes()
            self._metrics.record_cycle(
                self.sync_type, outcome.status, outcome.duration_ms / 1000, records=records
            )
            self._metrics.running.labels(sync_type=self.sync_type).set(0)


__all__ = ["CycleOutcome", "JobHealth", "SyncJob"]
