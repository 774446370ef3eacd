"""Persistence layer for Trend Tracker."""

from trendtracker.db.store import DataStore

__all__ = ["DataStore"]
