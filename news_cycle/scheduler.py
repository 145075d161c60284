"""Background scheduling for news cycle reconciliation passes."""
from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Optional, TypeVar

from apscheduler.schedulers.background import BackgroundScheduler

from .engine import NewsCycleEngine
from .fatigue import EventFatigueTracker
from .models import UpdateResult
from .telemetry import TelemetryCollector

logger = logging.getLogger(__name__)

T = TypeVar("T")


class NewsCycleScheduler:
    """Drives an engine on a fixed interval and on explicit turn advances.

    All passes share one lock, so a host that mutates the engine from other
    threads should route those calls through :meth:`run_exclusive`.
    """

    def __init__(
        self,
        engine: NewsCycleEngine,
        fatigue_tracker: EventFatigueTracker | None = None,
        *,
        interval_seconds: float | None = None,
        result_publisher: Optional[Callable[[UpdateResult], None]] = None,
        telemetry: TelemetryCollector | None = None,
    ) -> None:
        self.engine = engine
        self.fatigue_tracker = fatigue_tracker
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else engine.config.cycle_update_interval_seconds
        )
        if self.interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._publisher = result_publisher
        self._telemetry = telemetry
        self._lock = threading.Lock()
        self._scheduler: Any = None

    def start(self) -> None:
        if self._scheduler is not None:
            return
        self._scheduler = BackgroundScheduler()
        self._scheduler.add_job(
            self.run_update,
            "interval",
            seconds=self.interval_seconds,
            id="news_cycle_update",
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("News cycle scheduler started (every %ss)", self.interval_seconds)
        self._track_system_event("scheduler_started")

    def shutdown(self, wait: bool = False) -> None:
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("News cycle scheduler stopped")
        self._track_system_event("scheduler_stopped")

    @property
    def running(self) -> bool:
        return self._scheduler is not None

    def run_update(self) -> UpdateResult:
        """One time-driven pass; invoked by the interval job."""

        return self._run_pass("update", self.engine.update)

    def advance_turn(self) -> UpdateResult:
        """Turn-driven pass followed by category/entity fatigue decay."""

        def _turn() -> UpdateResult:
            result = self.engine.on_turn_advance()
            if self.fatigue_tracker is not None:
                self.fatigue_tracker.decay_fatigue()
            return result

        return self._run_pass("turn_advance", _turn)

    def run_exclusive(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Run ``func`` while holding the reconciliation lock."""

        with self._lock:
            return func(*args, **kwargs)

    def _run_pass(self, operation: str, func: Callable[[], UpdateResult]) -> UpdateResult:
        started = time.perf_counter()
        with self._lock:
            result = func()
        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            "%s complete: %d transitions, %d archived",
            operation,
            len(result.stage_transitions),
            len(result.archived_events),
        )
        if self._telemetry is not None:
            try:
                self._telemetry.track_performance(f"news_cycle_{operation}", duration_ms)
            except Exception:
                logger.debug("Failed to record %s duration", operation, exc_info=True)
        if self._publisher is not None:
            self._publisher(result)
        return result

    def _track_system_event(self, event: str) -> None:
        if self._telemetry is None:
            return
        try:
            self._telemetry.track_system_event(event, source="scheduler")
        except Exception:
            logger.debug("Failed to record scheduler event %s", event, exc_info=True)


__all__ = ["NewsCycleScheduler", "BackgroundScheduler"]
