"""Periodic jobs: candle generation, retention and trend analysis."""

from trendtracker.jobs.generator import CandleGenerator
from trendtracker.jobs.retention import RetentionManager
from trendtracker.jobs.seed import DEMO_INSTRUMENTS, seed_instruments
from trendtracker.jobs.trends import TrendAnalyzer

__all__ = [
    "CandleGenerator",
    "DEMO_INSTRUMENTS",
    "RetentionManager",
    "TrendAnalyzer",
    "seed_instruments",
]
