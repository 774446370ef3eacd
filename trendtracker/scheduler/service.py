"""Scheduler service driving the periodic jobs with APScheduler."""

import logging
import random
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from trendtracker.config import Settings
from trendtracker.db.store import DataStore
from trendtracker.jobs import CandleGenerator, RetentionManager, TrendAnalyzer, seed_instruments
from trendtracker.log import log_event
from trendtracker.models import TaskRun, TrendSummary
from trendtracker.scheduler.cadence import (
    Cadence,
    DailyCadence,
    IntervalCadence,
    WeeklyCadence,
)
from trendtracker.scheduler.guard import GuardedTask

logger = logging.getLogger(__name__)

PRICE_UPDATE = "price_update"
RETENTION = "retention"
TREND_ANALYSIS = "trend_analysis"

TASK_NAMES = [PRICE_UPDATE, RETENTION, TREND_ANALYSIS]


class JobScheduler:
    """Owns the three periodic tasks and the timer that fires them.

    Tasks share nothing but the store. Each is self-exclusive and swallows
    its own failures, so the timer keeps running whatever a task does.
    """

    def __init__(
        self,
        store: DataStore,
        settings: Optional[Settings] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
        scheduler: Optional[BaseScheduler] = None,
    ):
        """Initialize the scheduler service.

        Args:
            store: Shared data store.
            settings: Job and cadence settings. Defaults if None.
            rng: Randomness source for the candle generator.
            clock: Returns the current wall-clock time.
            scheduler: APScheduler instance to register the jobs with.
                A BackgroundScheduler if None.
        """
        self.store = store
        self.settings = settings or Settings()
        schedule = self.settings.schedule

        self.generator = CandleGenerator(store, self.settings.generator, rng, clock)
        self.retention = RetentionManager(
            store, timedelta(days=self.settings.retention.horizon_days), clock
        )
        self.analyzer = TrendAnalyzer(
            store, timedelta(days=schedule.trend_window_days), clock
        )
        self.last_trends: list[TrendSummary] = []

        self.tasks: dict[str, GuardedTask] = {
            PRICE_UPDATE: GuardedTask(PRICE_UPDATE, self.update_prices, clock),
            RETENTION: GuardedTask(RETENTION, self.purge_old_candles, clock),
            TREND_ANALYSIS: GuardedTask(TREND_ANALYSIS, self.analyze_trends, clock),
        }
        self.cadences: dict[str, Cadence] = {
            PRICE_UPDATE: IntervalCadence(
                timedelta(minutes=schedule.price_update_minutes), fire_immediately=True
            ),
            RETENTION: DailyCadence(schedule.retention_hour, schedule.retention_minute),
            TREND_ANALYSIS: WeeklyCadence(
                schedule.trends_day_of_week, schedule.trends_hour, schedule.trends_minute
            ),
        }

        if scheduler is None:
            scheduler_kwargs = {}
            if schedule.timezone:
                scheduler_kwargs["timezone"] = schedule.timezone
            scheduler = BackgroundScheduler(**scheduler_kwargs)
        self._scheduler = scheduler

    # ==================== Task bodies ====================

    def update_prices(self) -> dict[str, Any]:
        """Generate one candle per instrument, seeding demo instruments if none exist."""
        seeded = 0
        instruments = self.store.list_instruments()
        if not instruments:
            log_event(logger, logging.INFO, "seed.started", reason="no instruments")
            seeded = seed_instruments(self.store)
            instruments = self.store.list_instruments()

        outcome = self.generator.generate_all(instruments)
        return {
            "instruments": len(instruments),
            "seeded": seeded,
            "generated": len(outcome.succeeded),
            "failed": len(outcome.failed),
        }

    def purge_old_candles(self) -> dict[str, Any]:
        """Delete candles past the retention horizon."""
        return {"deleted": self.retention.purge()}

    def analyze_trends(self) -> dict[str, Any]:
        """Summarize candle history per instrument."""
        outcome = self.analyzer.analyze()
        self.last_trends = outcome.values
        return {
            "instruments": len(outcome.results),
            "summarized": len(outcome.succeeded),
            "failed": len(outcome.failed),
        }

    # ==================== Control ====================

    def run_task(self, name: str) -> TaskRun:
        """Run a task once, outside its cadence.

        Honors the same self-exclusion as scheduled firings.

        Raises:
            ValueError: If the task name is unknown.
        """
        if name not in self.tasks:
            raise ValueError(f"Unknown task: {name}. Must be one of {TASK_NAMES}")
        return self.tasks[name].run()

    def next_fire_times(self, now: Optional[datetime] = None) -> dict[str, datetime]:
        """Next firing of each task after ``now``, in the scheduler's timezone by default."""
        now = now or datetime.now(self._scheduler.timezone)
        return {name: cadence.next_fire_time(now) for name, cadence in self.cadences.items()}

    @property
    def running(self) -> bool:
        return self._scheduler.running

    def start(self) -> None:
        """Register the tasks and start the timer.

        With a BlockingScheduler this call blocks until shutdown.
        """
        for name in TASK_NAMES:
            self._scheduler.add_job(
                self.tasks[name].run,
                trigger=self.cadences[name],
                id=name,
                name=name,
                replace_existing=True,
                max_instances=1,  # overlapping firings are skipped
                coalesce=True,
            )
            log_event(
                logger, logging.INFO, "task.registered", job=name, cadence=self.cadences[name]
            )

        log_event(logger, logging.INFO, "scheduler.started", tasks=len(TASK_NAMES))
        self._scheduler.start()

    def shutdown(self, wait: bool = True) -> None:
        """Stop the timer, optionally waiting for running tasks to finish."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            log_event(logger, logging.INFO, "scheduler.stopped")
