"""
Sync service: independent schedules for each registered sync type.

Each job owns its busy guard and its interval trigger, so a stalled orders
cycle never blocks another sync type.

Example:
    >>> service = SyncService(metrics=SyncMetrics())
    >>> service.register(SyncJob("orders", pipeline.run), interval_seconds=300)
    >>> service.start()          # first cycle runs immediately
    >>> service.trigger("orders")  # manual run through the same guard
    >>> service.stop(wait=True)
"""

from __future__ import annotations

from typing import Any

from wms_sync.core.errors import ScheduleError
from wms_sync.logging import get_logger
from wms_sync.observability.metrics import SyncMetrics
from wms_sync.scheduling.interval import IntervalScheduler
from wms_sync.scheduling.job import CycleOutcome, SyncJob

log = get_logger(__name__)


class SyncService:
    """Registry and lifecycle of scheduled sync jobs."""

    def __init__(self, metrics: SyncMetrics | None = None):
        self.metrics = metrics
        self._jobs: dict[str, SyncJob] = {}
        self._schedulers: dict[str, IntervalScheduler] = {}

    def register(self, job: SyncJob, interval_seconds: float) -> SyncJob:
        if job.sync_type in self._jobs:
            raise ScheduleError(f"Sync job already registered: {job.sync_type}")
        self._jobs[job.sync_type] = job
        self._schedulers[job.sync_type] = IntervalScheduler(
            interval_seconds, job.dispatch, name=job.sync_type
        )
        return job

    def job(self, sync_type: str) -> SyncJob:
        try:
            return self._jobs[sync_type]
        except KeyError:
            raise ScheduleError(f"Unknown sync job: {sync_type}") from None

    @property
    def sync_types(self) -> list[str]:
        return list(self._jobs)

    def start(self) -> None:
        for scheduler in self._schedulers.values():
            scheduler.start()
        log.info("sync.service.started", jobs=self.sync_types)

    def stop(self, *, wait: bool = True, timeout: float | None = None) -> None:
        """Cancel all timers; with ``wait`` let running cycles finish first."""
        for scheduler in self._schedulers.values():
            scheduler.stop()
        if wait:
            for job in self._jobs.values():
                if not job.wait_idle(timeout):
                    log.warning("sync.service.stop_timeout", sync_type=job.sync_type)
        log.info("sync.service.stopped", jobs=self.sync_types)

    def trigger(self, sync_type: str) -> CycleOutcome:
        return self.job(sync_type).run_now("manual")

    def health(self) -> dict[str, Any]:
        return {
            name: {
                **self._jobs[name].health().to_dict(),
                "scheduler": self._schedulers[name].health().to_dict(),
            }
            for name in self._jobs
        }


__all__ = ["SyncService"]
