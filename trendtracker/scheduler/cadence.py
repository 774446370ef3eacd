"""Explicit next-fire-time cadences for the periodic jobs.

Each cadence answers "when is the next firing after this instant" and plugs
into APScheduler as a trigger.
"""

from abc import abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from apscheduler.triggers.base import BaseTrigger

WEEKDAYS = ["mon", "tue", "wed", "thu", "fri", "sat", "sun"]


class Cadence(BaseTrigger):
    """Base class for job cadences."""

    @abstractmethod
    def next_fire_time(self, after: datetime) -> datetime:
        """Return the first firing strictly after ``after``."""

    def get_next_fire_time(
        self, previous_fire_time: Optional[datetime], now: datetime
    ) -> Optional[datetime]:
        return self.next_fire_time(previous_fire_time or now)


class IntervalCadence(Cadence):
    """Fires every fixed interval, measured from the previous firing."""

    def __init__(self, interval: timedelta, fire_immediately: bool = False):
        if interval <= timedelta(0):
            raise ValueError("Interval must be positive")
        self.interval = interval
        self.fire_immediately = fire_immediately

    def next_fire_time(self, after: datetime) -> datetime:
        return after + self.interval

    def get_next_fire_time(
        self, previous_fire_time: Optional[datetime], now: datetime
    ) -> Optional[datetime]:
        if previous_fire_time is None:
            return now if self.fire_immediately else now + self.interval
        return previous_fire_time + self.interval

    def __str__(self) -> str:
        return f"every {self.interval}"

    def __repr__(self) -> str:
        return f"<IntervalCadence (interval={self.interval!r})>"


class DailyCadence(Cadence):
    """Fires once a day at a fixed wall-clock time."""

    def __init__(self, hour: int, minute: int = 0):
        if not 0 <= hour <= 23 or not 0 <= minute <= 59:
            raise ValueError(f"Invalid time of day {hour:02d}:{minute:02d}")
        self.hour = hour
        self.minute = minute

    def next_fire_time(self, after: datetime) -> datetime:
        candidate = after.replace(
            hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        if candidate <= after:
            candidate += timedelta(days=1)
        return candidate

    def __str__(self) -> str:
        return f"daily at {self.hour:02d}:{self.minute:02d}"

    def __repr__(self) -> str:
        return f"<DailyCadence (hour={self.hour}, minute={self.minute})>"


class WeeklyCadence(Cadence):
    """Fires once a week on a fixed weekday (0 = Monday) and time."""

    def __init__(self, day_of_week: int, hour: int, minute: int = 0):
        if not 0 <= day_of_week <= 6:
            raise ValueError(f"Invalid day of week {day_of_week}")
        if not 0 <= hour <= 23 or not 0 <= minute <= 59:
            raise ValueError(f"Invalid time of day {hour:02d}:{minute:02d}")
        self.day_of_week = day_of_week
        self.hour = hour
        self.minute = minute

    def next_fire_time(self, after: datetime) -> datetime:
        days_ahead = (self.day_of_week - after.weekday()) % 7
        candidate = (after + timedelta(days=days_ahead)).replace(
            hour=self.hour, minute=self.minute, second=0, microsecond=0
        )
        if candidate <= after:
            candidate += timedelta(days=7)
        return candidate

    def __str__(self) -> str:
        return f"weekly on {WEEKDAYS[self.day_of_week]} at {self.hour:02d}:{self.minute:02d}"

    def __repr__(self) -> str:
        return (
            f"<WeeklyCadence (day_of_week={self.day_of_week}, "
            f"hour={self.hour}, minute={self.minute})>"
        )
