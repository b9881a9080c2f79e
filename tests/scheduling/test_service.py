"""Tests for SyncService with a real pipeline against SQLite."""

import threading
import time

import pytest

from wms_sync.core.errors import ScheduleError
from wms_sync.observability.metrics import MetricsRegistry, SyncMetrics
from wms_sync.orders.pipeline import OrdersSyncPipeline
from wms_sync.orders.repository import OrderRepository
from wms_sync.orders.schema import OrderSchemaGuardian
from wms_sync.orders.source import OrderSource
from wms_sync.scheduling import SyncJob, SyncService


@pytest.fixture
def service():
    svc = SyncService(metrics=SyncMetrics(MetricsRegistry()))
    yield svc
    svc.stop(wait=True, timeout=2)


class TestRegistration:
    def test_duplicate_rejected(self, service):
        service.register(SyncJob("orders", lambda: None), interval_seconds=60)
        with pytest.raises(ScheduleError):
            service.register(SyncJob("orders", lambda: None), interval_seconds=60)

    def test_unknown_job(self, service):
        with pytest.raises(ScheduleError):
            service.job("photos")

    def test_sync_types(self, service):
        service.register(SyncJob("orders", lambda: None), interval_seconds=60)
        assert service.sync_types == ["orders"]


class TestLifecycle:
    def test_start_runs_first_cycle_immediately(self, service):
        ran = threading.Event()
        service.register(SyncJob("orders", ran.set), interval_seconds=60)
        service.start()
        assert ran.wait(2)

    def test_manual_trigger(self, service):
        service.register(SyncJob("orders", lambda: None), interval_seconds=60)
        assert service.trigger("orders").status == "ok"

    def test_stop_waits_for_running_cycle(self, service):
        finished = threading.Event()
        started = threading.Event()

        def cycle():
            started.set()
            time.sleep(0.2)
            finished.set()

        service.register(SyncJob("orders", cycle), interval_seconds=60)
        service.start()
        assert started.wait(2)
        service.stop(wait=True, timeout=2)
        assert finished.is_set()

    def test_health(self, service):
        service.register(SyncJob("orders", lambda: None), interval_seconds=60)
        service.trigger("orders")
        health = service.health()
        assert health["orders"]["runs"] == 1
        assert health["orders"]["scheduler"]["interval_seconds"] == 60


@pytest.mark.slow
class TestStalledFetch:
    def test_slow_fetch_suppresses_overlapping_cycles(self, sqlite_adapter, source_adapter, make_raw):
        release = threading.Event()
        calls = []

        def stalled_query(sql, params=None):
            calls.append(sql)
            release.wait(5)
            return [make_raw()]

        source_adapter.query.side_effect = stalled_query
        pipeline = OrdersSyncPipeline(
            source=OrderSource(source_adapter),
            guardian=OrderSchemaGuardian(sqlite_adapter),
            repository=OrderRepository(sqlite_adapter),
        )
        job = SyncJob("orders", pipeline.run)
        service = SyncService()
        service.register(job, interval_seconds=0.05)

        service.start()
        time.sleep(0.3)
        service.stop(wait=False)
        release.set()
        assert job.wait_idle(timeout=2)

        assert len(calls) == 1
        assert job.health().skips >= 2
        assert pipeline.repository.count() == 1
