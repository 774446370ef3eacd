"""Tests for the SQLite data store."""

import tempfile
import time
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import NOW, days_ago, make_candle
from trendtracker.db.store import DataStore


class TestSchema:
    """A fresh database has every required table."""

    def test_schema_completeness(self, temp_db: DataStore):
        tables = temp_db.get_tables()
        for table in DataStore.REQUIRED_TABLES:
            assert table in tables, f"Required table '{table}' is missing"

    def test_reopening_existing_database_keeps_data(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            db_path = Path(tmpdir) / "nested" / "test.db"
            DataStore(db_path).create_instrument("AAPL", "Apple Inc.", "NASDAQ")

            reopened = DataStore(db_path)
            assert reopened.instrument_exists("AAPL")


class TestInstruments:

    def test_create_and_get(self, temp_db: DataStore):
        created = temp_db.create_instrument("aapl", "Apple Inc.", "NASDAQ")

        assert created.id is not None
        assert created.symbol == "AAPL"
        fetched = temp_db.get_instrument(created.id)
        assert fetched == created

    def test_symbol_identity_is_case_insensitive(self, temp_db: DataStore):
        temp_db.create_instrument("MSFT", "Microsoft Corporation")

        assert temp_db.instrument_exists("msft")
        assert temp_db.get_instrument_by_symbol("Msft").symbol == "MSFT"
        with pytest.raises(ValueError, match="already exists"):
            temp_db.create_instrument("msft", "Duplicate")

    def test_get_missing_returns_none(self, temp_db: DataStore):
        assert temp_db.get_instrument(999) is None
        assert temp_db.get_instrument_by_symbol("NOPE") is None
        assert not temp_db.instrument_exists("NOPE")

    def test_update_refreshes_updated_at(self, temp_db: DataStore):
        created = temp_db.create_instrument("TSLA", "Tesla Inc.")
        time.sleep(0.01)

        updated = temp_db.update_instrument(created.id, exchange="NASDAQ")

        assert updated.exchange == "NASDAQ"
        assert updated.name == "Tesla Inc."
        assert updated.created_at == created.created_at
        assert updated.updated_at > created.updated_at
        assert temp_db.get_instrument(created.id) == updated

    def test_update_missing_raises(self, temp_db: DataStore):
        with pytest.raises(ValueError, match="not found"):
            temp_db.update_instrument(42, name="Ghost")

    def test_delete_cascades_to_candles(self, temp_db: DataStore):
        keep = temp_db.create_instrument("AAPL", "Apple Inc.")
        drop = temp_db.create_instrument("META", "Meta Platforms Inc.")
        for i in range(3):
            temp_db.insert_candle(make_candle(drop.id, NOW + timedelta(minutes=5 * i)))
        temp_db.insert_candle(make_candle(keep.id))

        removed = temp_db.delete_instrument(drop.id)

        assert removed == 3
        assert temp_db.get_instrument(drop.id) is None
        assert temp_db.count_candles(drop.id) == 0
        assert temp_db.count_candles(keep.id) == 1

    def test_delete_missing_raises(self, temp_db: DataStore):
        with pytest.raises(ValueError, match="not found"):
            temp_db.delete_instrument(7)

    def test_search_and_exchange_queries(self, temp_db: DataStore):
        temp_db.create_instrument("AAPL", "Apple Inc.", "NASDAQ")
        temp_db.create_instrument("IBM", "International Business Machines", "NYSE")
        temp_db.create_instrument("PRIV", "Private Co.")

        assert [i.symbol for i in temp_db.search_instruments("apple")] == ["AAPL"]
        assert [i.symbol for i in temp_db.search_instruments("i")] == ["AAPL", "IBM", "PRIV"]
        assert [i.symbol for i in temp_db.instruments_by_exchange("NYSE")] == ["IBM"]
        assert temp_db.distinct_exchanges() == ["NASDAQ", "NYSE"]

    def test_ranking_by_candle_count(self, temp_db: DataStore):
        quiet = temp_db.create_instrument("AAA", "Quiet")
        busy = temp_db.create_instrument("BBB", "Busy")
        empty = temp_db.create_instrument("CCC", "Empty")
        for i in range(3):
            temp_db.insert_candle(make_candle(busy.id, NOW + timedelta(minutes=i)))
        temp_db.insert_candle(make_candle(quiet.id))

        ranked = temp_db.instruments_by_candle_count()

        assert [i.id for i in ranked] == [busy.id, quiet.id, empty.id]


class TestCandles:

    def test_insert_preserves_decimal_prices(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("NVDA", "NVIDIA Corporation")
        stored = temp_db.insert_candle(make_candle(instrument.id, close="123.45"))

        latest = temp_db.latest_candle(instrument.id)

        assert latest == stored
        assert latest.close == Decimal("123.45")
        assert latest.high == Decimal("124.45")

    def test_latest_candle_orders_by_timestamp(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("AMZN", "Amazon.com Inc.")
        temp_db.insert_candle(make_candle(instrument.id, NOW, close="10.00"))
        temp_db.insert_candle(make_candle(instrument.id, days_ago(1), close="20.00"))

        assert temp_db.latest_candle(instrument.id).close == Decimal("10.00")

    def test_latest_candle_by_timeframe(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("AMZN", "Amazon.com Inc.")
        temp_db.insert_candle(make_candle(instrument.id, days_ago(1), "10.00", "5m"))
        temp_db.insert_candle(make_candle(instrument.id, NOW, "20.00", "1h"))

        assert temp_db.latest_candle(instrument.id, "5m").close == Decimal("10.00")
        assert temp_db.latest_candle(instrument.id).close == Decimal("20.00")
        assert temp_db.latest_candle(instrument.id, "1d") is None

    def test_distinct_timeframes(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("GOOGL", "Alphabet Inc.")
        for minutes, tf in [(0, "5m"), (5, "5m"), (60, "1h")]:
            temp_db.insert_candle(
                make_candle(instrument.id, NOW + timedelta(minutes=minutes), timeframe=tf)
            )

        assert temp_db.distinct_timeframes(instrument.id) == ["1h", "5m"]
        assert temp_db.count_candles(instrument.id) == 3
        assert temp_db.count_candles() == 3

    def test_range_query_and_paging(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("NFLX", "Netflix Inc.")
        for day in range(5):
            temp_db.insert_candle(make_candle(instrument.id, days_ago(day)))

        in_range = temp_db.get_candles(instrument.id, start=days_ago(3), end=days_ago(1))
        assert [c.timestamp for c in in_range] == [days_ago(3), days_ago(2), days_ago(1)]

        first_page = temp_db.recent_candles(instrument.id, limit=2)
        second_page = temp_db.recent_candles(instrument.id, limit=2, offset=2)
        assert [c.timestamp for c in first_page] == [days_ago(0), days_ago(1)]
        assert [c.timestamp for c in second_page] == [days_ago(2), days_ago(3)]

    def test_average_close(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("MSFT", "Microsoft Corporation")
        temp_db.insert_candle(make_candle(instrument.id, days_ago(1), close="10.00"))
        temp_db.insert_candle(make_candle(instrument.id, days_ago(2), close="20.01"))
        temp_db.insert_candle(make_candle(instrument.id, days_ago(20), close="99.00"))

        average = temp_db.average_close(instrument.id, days_ago(7), NOW)

        assert average == Decimal("15.01")
        assert temp_db.average_close(instrument.id, days_ago(60), days_ago(30)) is None

    def test_delete_older_than_is_strict(self, temp_db: DataStore):
        instrument = temp_db.create_instrument("AAPL", "Apple Inc.")
        temp_db.insert_candle(make_candle(instrument.id, days_ago(2)))
        temp_db.insert_candle(make_candle(instrument.id, days_ago(1)))

        assert temp_db.delete_candles_older_than(days_ago(1)) == 1
        assert temp_db.count_candles(instrument.id) == 1
        assert temp_db.instrument_exists("AAPL")

    @given(
        offsets=st.lists(
            st.integers(min_value=0, max_value=10_000_000),
            min_size=1,
            max_size=20,
        ),
    )
    @settings(max_examples=25, deadline=None)
    def test_timestamp_order_survives_storage(self, offsets: list[int]):
        """
        *For any* set of timestamps, range queries return them in time order,
        including timestamps with and without fractional seconds.
        """
        with tempfile.TemporaryDirectory() as tmpdir:
            store = DataStore(Path(tmpdir) / "test.db")
            instrument = store.create_instrument("AAPL", "Apple Inc.")
            stamps = [NOW + timedelta(microseconds=o * 7) for o in offsets]
            for stamp in stamps:
                store.insert_candle(make_candle(instrument.id, stamp))

            stored = [c.timestamp for c in store.get_candles(instrument.id)]

            assert stored == sorted(stamps)
