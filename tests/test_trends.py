"""Tests for the trend analyzer."""

import tempfile
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from conftest import NOW, days_ago, make_candle
from trendtracker.db.store import DataStore
from trendtracker.jobs.trends import TrendAnalyzer


class FailingCountStore(DataStore):
    """Store whose candle count fails for selected instruments."""

    def __init__(self, db_path: Path):
        super().__init__(db_path)
        self.failing_ids: set[int] = set()

    def count_candles(self, instrument_id=None):
        if instrument_id in self.failing_ids:
            raise RuntimeError("count failed")
        return super().count_candles(instrument_id)


class TestTrendAnalyzer:

    def test_summary_counts_and_timeframes(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("AAPL", "Apple Inc.")
        for minutes, tf in [(0, "5m"), (5, "5m"), (60, "1h")]:
            temp_db.insert_candle(
                make_candle(instrument.id, days_ago(1) + timedelta(minutes=minutes), timeframe=tf)
            )

        outcome = TrendAnalyzer(temp_db, clock=lambda: NOW).analyze()

        assert len(outcome.values) == 1
        summary = outcome.values[0]
        assert summary.candle_count == 3
        assert summary.timeframes == {"5m", "1h"}
        assert summary.latest_close == Decimal("100.00")
        assert summary.average_close == Decimal("100.00")

    def test_instruments_ranked_by_candle_count(self, temp_db: DataStore):
        counts = {"AAA": 1, "BBB": 4, "CCC": 0, "DDD": 2}
        for symbol, n in counts.items():
            instrument = temp_db.create_instrument(symbol, symbol)
            for i in range(n):
                temp_db.insert_candle(make_candle(instrument.id, days_ago(i)))

        outcome = TrendAnalyzer(temp_db, clock=lambda: NOW).analyze()

        assert [s.symbol for s in outcome.values] == ["BBB", "DDD", "AAA", "CCC"]
        assert [s.candle_count for s in outcome.values] == [4, 2, 1, 0]

    def test_empty_instrument_has_no_prices(self, temp_db: DataStore):
        temp_db.create_instrument("NEW", "New Listing")

        summary = TrendAnalyzer(temp_db, clock=lambda: NOW).analyze().values[0]

        assert summary.candle_count == 0
        assert summary.timeframes == frozenset()
        assert summary.latest_close is None
        assert summary.average_close is None

    def test_average_uses_trailing_window(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("AAPL", "Apple Inc.")
        temp_db.insert_candle(make_candle(instrument.id, days_ago(1), close="10.00"))
        temp_db.insert_candle(make_candle(instrument.id, days_ago(10), close="50.00"))

        analyzer = TrendAnalyzer(temp_db, window=timedelta(days=7), clock=lambda: NOW)

        assert analyzer.analyze().values[0].average_close == Decimal("10.00")

    def test_does_not_mutate_store(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("AAPL", "Apple Inc.")
        temp_db.insert_candle(make_candle(instrument.id, days_ago(40)))
        before = (temp_db.list_instruments(), temp_db.get_candles(instrument.id))

        TrendAnalyzer(temp_db, clock=lambda: NOW).analyze()

        assert (temp_db.list_instruments(), temp_db.get_candles(instrument.id)) == before

    def test_failure_is_isolated_per_instrument(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = FailingCountStore(Path(tmpdir) / "test.db")
            for symbol in ["AAA", "BBB", "CCC"]:
                store.create_instrument(symbol, symbol)
            store.failing_ids.add(store.get_instrument_by_symbol("BBB").id)

            outcome = TrendAnalyzer(store, clock=lambda: NOW).analyze()

            assert sorted(s.symbol for s in outcome.values) == ["AAA", "CCC"]
            assert [r.key for r in outcome.failed] == ["BBB"]
