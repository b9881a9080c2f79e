"""Scheduling: busy-guarded sync jobs on fixed-interval triggers."""

from wms_sync.scheduling.interval import IntervalScheduler, SchedulerHealth
from wms_sync.scheduling.job import CycleOutcome, JobHealth, SyncJob
from wms_sync.scheduling.service import SyncService

__all__ = [
    "CycleOutcome",
    "IntervalScheduler",
    "JobHealth",
    "SchedulerHealth",
    "SyncJob",
    "SyncService",
]
