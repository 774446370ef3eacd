"""Candle retention."""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from trendtracker.db.store import DataStore
from trendtracker.log import log_event

logger = logging.getLogger(__name__)

DEFAULT_HORIZON = timedelta(days=30)


class RetentionManager:
    """Deletes candles that have aged past the retention horizon."""

    def __init__(
        self,
        store: DataStore,
        horizon: timedelta = DEFAULT_HORIZON,
        clock: Callable[[], datetime] = datetime.now,
    ):
        if horizon <= timedelta(0):
            raise ValueError("Retention horizon must be positive")
        self._store = store
        self.horizon = horizon
        self._clock = clock

    def cutoff(self, horizon: Optional[timedelta] = None) -> datetime:
        """Oldest timestamp that is still retained."""
        if horizon is None:
            horizon = self.horizon
        elif horizon <= timedelta(0):
            raise ValueError("Retention horizon must be positive")
        return self._clock() - horizon

    def purge(self, horizon: Optional[timedelta] = None) -> int:
        """Delete candles strictly older than now minus the horizon.

        Instruments are never removed.

        Returns:
            Number of deleted candles.

        Raises:
            ValueError: If ``horizon`` is not positive.
        """
        cutoff = self.cutoff(horizon)
        deleted = self._store.delete_candles_older_than(cutoff)
        log_event(
            logger,
            logging.INFO,
            "retention.purged",
            deleted=deleted,
            cutoff=cutoff.isoformat(timespec="seconds"),
        )
        return deleted
