"""Shared fixtures for Trend Tracker tests."""

import tempfile
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from trendtracker.db.store import DataStore
from trendtracker.models import Candle

NOW = datetime(2026, 10, 19, 12, 0, 0)


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test.db"
        yield DataStore(db_path)


def make_candle(
    instrument_id: int,
    timestamp: datetime = NOW,
    close: str = "100.00",
    timeframe: str = "5m",
) -> Candle:
    """Build a valid candle around a close price."""
    price = Decimal(close)
    return Candle(
        instrument_id=instrument_id,
        timestamp=timestamp,
        open=price,
        high=price + 1,
        low=price - 1,
        close=price,
        volume=1_000_000,
        timeframe=timeframe,
    )


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


class FailingStore(DataStore):
    """Store whose candle lookup fails for selected instruments."""

    def __init__(self, db_path: Path, failing_ids: set[int]):
        super().__init__(db_path)
        self.failing_ids = failing_ids

    def latest_candle(self, instrument_id, timeframe=None):
        if instrument_id in self.failing_ids:
            raise RuntimeError("lookup failed")
        return super().latest_candle(instrument_id, timeframe)
