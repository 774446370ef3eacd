"""Scheduling of the periodic jobs."""

from trendtracker.scheduler.cadence import (
    Cadence,
    DailyCadence,
    IntervalCadence,
    WeeklyCadence,
)
from trendtracker.scheduler.guard import GuardedTask
from trendtracker.scheduler.service import (
    PRICE_UPDATE,
    RETENTION,
    TASK_NAMES,
    TREND_ANALYSIS,
    JobScheduler,
)

__all__ = [
    "Cadence",
    "DailyCadence",
    "GuardedTask",
    "IntervalCadence",
    "JobScheduler",
    "PRICE_UPDATE",
    "RETENTION",
    "TASK_NAMES",
    "TREND_ANALYSIS",
    "WeeklyCadence",
]
