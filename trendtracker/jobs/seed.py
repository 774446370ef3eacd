"""Demonstration instrument seeding."""

import logging

from trendtracker.db.store import DataStore
from trendtracker.log import log_event

logger = logging.getLogger(__name__)

# (symbol, name, exchange)
DEMO_INSTRUMENTS = [
    ("AAPL", "Apple Inc.", "NASDAQ"),
    ("GOOGL", "Alphabet Inc.", "NASDAQ"),
    ("MSFT", "Microsoft Corporation", "NASDAQ"),
    ("AMZN", "Amazon.com Inc.", "NASDAQ"),
    ("TSLA", "Tesla Inc.", "NASDAQ"),
    ("NVDA", "NVIDIA Corporation", "NASDAQ"),
    ("META", "Meta Platforms Inc.", "NASDAQ"),
    ("NFLX", "Netflix Inc.", "NASDAQ"),
]


def seed_instruments(store: DataStore) -> int:
    """Insert the demonstration instruments that are not tracked yet.

    Safe to call repeatedly: existing symbols are skipped.

    Returns:
        Number of instruments created.
    """
    created = 0
    for symbol, name, exchange in DEMO_INSTRUMENTS:
        if store.instrument_exists(symbol):
            continue
        store.create_instrument(symbol, name, exchange)
        created += 1
        log_event(logger, logging.INFO, "seed.created", symbol=symbol, name=name)
    return created
