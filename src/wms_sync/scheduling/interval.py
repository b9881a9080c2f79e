"""Fixed-interval trigger thread.

Fires once immediately on ``start()`` and then every ``interval_seconds``
until ``stop()``.  The callback must not block: for sync jobs it is
:meth:`SyncJob.dispatch`, which hands the cycle to a worker thread, so a
slow cycle never delays the timer and overlapping triggers are skipped by
the job's busy guard.

::

    start()
      │
      ▼
    daemon thread:
      on_tick("startup")
      while not stop_event.wait(interval):
          tick_count += 1
          on_tick("interval")

    stop() ──▶ stop_event.set(); join timer thread
               (a running cycle is left to finish)
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from wms_sync.core.errors import ScheduleError
from wms_sync.logging import get_logger

log = get_logger(__name__)

TickCallback = Callable[[str], Any]


@dataclass
class SchedulerHealth:
    """Structured scheduler health response."""

    healthy: bool
    name: str
    tick_count: int = 0
    last_tick: datetime | None = None
    interval_seconds: float = 0.0
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "healthy": self.healthy,
            "name": self.name,
            "tick_count": self.tick_count,
            "last_tick": self.last_tick.isoformat() if self.last_tick else None,
            "interval_seconds": self.interval_seconds,
            **self.extra,
        }


class IntervalScheduler:
    """Immediate-then-fixed-interval trigger on a daemon thread.

    Example:
        >>> scheduler = IntervalScheduler(300.0, job.dispatch, name="orders")
        >>> scheduler.start()
        >>> # ... later ...
        >>> scheduler.stop()
    """

    def __init__(self, interval_seconds: float, on_tick: TickCallback, *, name: str = "sync"):
        if interval_seconds <= 0:
            raise ScheduleError(f"Interval must be positive, got {interval_seconds}")
        self._interval = interval_seconds
        self._on_tick = on_tick
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._last_tick: datetime | None = None
        self._started = False
        self._lock = threading.Lock()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    def start(self) -> None:
        """Fire immediately, then arm the interval."""
        with self._lock:
            if self._started:
                log.warning("scheduler.already_started", scheduler=self.name)
                return
            self._started = True
        self._stop_event.clear()

        def _loop() -> None:
            log.info("scheduler.started", scheduler=self.name, interval_seconds=self._interval)
            self._fire("startup")
            while not self._stop_event.wait(self._interval):
                self._fire("interval")
            log.info("scheduler.stopped", scheduler=self.name)

        self._thread = threading.Thread(target=_loop, daemon=True, name=f"wms-sync-{self.name}-timer")
        self._thread.start()

    def _fire(self, trigger: str) -> None:
        with self._lock:
            self._tick_count += 1
            self._last_tick = datetime.now(UTC)
        try:
            self._on_tick(trigger)
        except Exception as e:
            log.exception("scheduler.tick_failed", scheduler=self.name, error=str(e))

    def stop(self, timeout: float = 5.0) -> None:
        """Cancel future ticks; does not interrupt a running cycle."""
        with self._lock:
            if not self._started:
                return
            self._started = False

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                log.warning("scheduler.stop_timeout", scheduler=self.name)

    @property
    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_tick(self) -> datetime | None:
        return self._last_tick

    def health(self) -> SchedulerHealth:
        return SchedulerHealth(
            healthy=self.is_running,
            name=self.name,
            tick_count=self._tick_count,
            last_tick=self._last_tick,
            interval_seconds=self._interval,
        )


__all__ = ["IntervalScheduler", "SchedulerHealth", "TickCallback"]
