"""Weekly trend analysis over stored candle history."""

import logging
from datetime import datetime, timedelta
from typing import Callable

from trendtracker.db.store import DataStore
from trendtracker.log import log_event
from trendtracker.models import BatchOutcome, Instrument, ItemResult, TrendSummary

logger = logging.getLogger(__name__)


class TrendAnalyzer:
    """Read-only per-instrument aggregation of candle history."""

    def __init__(
        self,
        store: DataStore,
        window: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the analyzer.

        Args:
            store: Store to read from. Never written to.
            window: Trailing window for the average close.
            clock: Returns the current wall-clock time.
        """
        self._store = store
        self.window = window
        self._clock = clock

    def summarize(self, instrument: Instrument) -> TrendSummary:
        """Compute the summary of one instrument."""
        now = self._clock()
        latest = self._store.latest_candle(instrument.id)
        return TrendSummary(
            instrument_id=instrument.id,
            symbol=instrument.symbol,
            name=instrument.name,
            candle_count=self._store.count_candles(instrument.id),
            timeframes=frozenset(self._store.distinct_timeframes(instrument.id)),
            latest_close=latest.close if latest else None,
            average_close=self._store.average_close(
                instrument.id, now - self.window, now
            ),
        )

    def analyze(self) -> BatchOutcome[TrendSummary]:
        """Summarize every instrument, busiest first.

        A failing instrument is logged and recorded without aborting the
        remaining ones.
        """
        outcome: BatchOutcome[TrendSummary] = BatchOutcome()
        for instrument in self._store.instruments_by_candle_count():
            try:
                summary = self.summarize(instrument)
            except Exception as e:
                log_event(
                    logger,
                    logging.ERROR,
                    "trend.failed",
                    exc_info=True,
                    symbol=instrument.symbol,
                    error=e,
                )
                outcome.add(ItemResult.failure(instrument.symbol, e))
                continue

            log_event(
                logger,
                logging.INFO,
                "trend.summary",
                symbol=summary.symbol,
                name=summary.name,
                candles=summary.candle_count,
                timeframes=summary.timeframes,
                average_close=summary.average_close,
            )
            outcome.add(ItemResult.success(instrument.symbol, summary))
        return outcome
