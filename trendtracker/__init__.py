"""Trend Tracker - scheduled synthetic OHLCV tracking for equity instruments."""

__version__ = "0.1.0"
