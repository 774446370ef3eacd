"""Synthetic candle generator.

Stands in for a real market-data feed: each call extends an instrument's
price path by one random-walk step from its latest close.
"""

import logging
import random
from datetime import datetime
from decimal import ROUND_DOWN, Decimal
from typing import Callable, Iterable, Optional

from trendtracker.config import GeneratorSettings
from trendtracker.db.store import DataStore
from trendtracker.log import log_event
from trendtracker.models import BatchOutcome, Candle, Instrument, ItemResult, to_price

logger = logging.getLogger(__name__)


class CandleGenerator:
    """Produces and persists the next synthetic candle for an instrument."""

    def __init__(
        self,
        store: DataStore,
        settings: Optional[GeneratorSettings] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize the generator.

        Args:
            store: Store used to read the latest candle and persist new ones.
            settings: Price, pad and volume bounds. Defaults if None.
            rng: Randomness source. A fresh one seeded from settings if None.
            clock: Returns the current wall-clock time.
        """
        self._store = store
        self.settings = settings or GeneratorSettings()
        self._rng = rng or random.Random(self.settings.random_seed)
        self._clock = clock

    @property
    def timeframe(self) -> str:
        return self.settings.timeframe

    def _uniform(self, low: float, high: float) -> Decimal:
        # exact decimal arithmetic and truncation keep the result in [low, high)
        low, high = Decimal(str(low)), Decimal(str(high))
        return to_price(low + Decimal(repr(self._rng.random())) * (high - low), ROUND_DOWN)

    def _seed_price(self) -> Decimal:
        return self._uniform(self.settings.seed_price_min, self.settings.seed_price_max)

    def _change_fraction(self) -> float:
        # random() is in [0, 1), so the step is in [-max, +max)
        span = self.settings.max_change_percent / 100
        return (self._rng.random() - 0.5) * 2 * span

    def _pad(self) -> Decimal:
        return self._uniform(0, self.settings.max_pad)

    def _volume(self) -> int:
        return self._rng.randrange(self.settings.volume_min, self.settings.volume_max)

    def next_candle(self, instrument: Instrument, previous: Optional[Candle]) -> Candle:
        """Build the candle that follows ``previous`` without storing it."""
        base = previous.close if previous is not None else self._seed_price()

        open_price = base
        close_price = to_price(base + base * Decimal(repr(self._change_fraction())))
        high = max(open_price, close_price) + self._pad()
        low = max(min(open_price, close_price) - self._pad(), Decimal("0"))

        timestamp = self._clock()
        if previous is not None and previous.timestamp > timestamp:
            timestamp = previous.timestamp

        return Candle(
            instrument_id=instrument.id,
            timestamp=timestamp,
            open=open_price,
            high=high,
            low=low,
            close=close_price,
            volume=self._volume(),
            timeframe=self.timeframe,
        )

    def generate(self, instrument: Instrument) -> Candle:
        """Generate, persist and return the next candle for an instrument."""
        if instrument.id is None:
            raise ValueError(f"Instrument {instrument.symbol} has not been stored")

        previous = self._store.latest_candle(instrument.id, timeframe=self.timeframe)
        candle = self._store.insert_candle(self.next_candle(instrument, previous))

        log_event(
            logger,
            logging.DEBUG,
            "candle.generated",
            symbol=instrument.symbol,
            open=candle.open,
            high=candle.high,
            low=candle.low,
            close=candle.close,
            volume=candle.volume,
        )
        return candle

    def generate_all(self, instruments: Iterable[Instrument]) -> BatchOutcome[Candle]:
        """Generate one candle per instrument, isolating failures.

        A failing instrument is logged and recorded; the rest still get
        their candle.
        """
        outcome: BatchOutcome[Candle] = BatchOutcome()
        for instrument in instruments:
            try:
                candle = self.generate(instrument)
            except Exception as e:
                log_event(
                    logger,
                    logging.ERROR,
                    "candle.failed",
                    exc_info=True,
                    symbol=instrument.symbol,
                    error=e,
                )
                outcome.add(ItemResult.failure(instrument.symbol, e))
            else:
                outcome.add(ItemResult.success(instrument.symbol, candle))
        return outcome
