"""Data models for Trend Tracker."""

from trendtracker.models.candle import Candle, to_price
from trendtracker.models.instrument import Instrument
from trendtracker.models.results import BatchOutcome, ItemResult, TaskRun
from trendtracker.models.summary import TrendSummary

__all__ = [
    "BatchOutcome",
    "Candle",
    "Instrument",
    "ItemResult",
    "TaskRun",
    "TrendSummary",
    "to_price",
]
