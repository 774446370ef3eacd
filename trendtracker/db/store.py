"""SQLite data store for Trend Tracker."""

import sqlite3
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from trendtracker.models import Candle, Instrument, to_price

TIMESTAMP_SPEC = "microseconds"


def _ts(value: datetime) -> str:
    """Serialize a timestamp so that text order matches time order."""
    return value.isoformat(timespec=TIMESTAMP_SPEC)


class DataStore:
    """SQLite-based data store for instruments and their candles."""

    REQUIRED_TABLES = [
        "instruments",
        "candles",
    ]

    def __init__(self, db_path: Path, timeout: float = 10.0):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
            timeout: Seconds to wait on a locked database before failing.
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path, timeout=self.timeout)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS instruments (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL UNIQUE COLLATE NOCASE,
                    name TEXT NOT NULL,
                    exchange TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            # Prices are TEXT so Decimal values round-trip exactly
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS candles (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    instrument_id INTEGER NOT NULL
                        REFERENCES instruments(id) ON DELETE CASCADE,
                    timestamp TEXT NOT NULL,
                    open TEXT NOT NULL,
                    high TEXT NOT NULL,
                    low TEXT NOT NULL,
                    close TEXT NOT NULL,
                    volume INTEGER NOT NULL,
                    timeframe TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_candles_instrument_ts
                ON candles (instrument_id, timestamp)
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_candles_ts
                ON candles (timestamp)
            """)

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    @staticmethod
    def _row_to_instrument(row: sqlite3.Row) -> Instrument:
        return Instrument(
            id=row["id"],
            symbol=row["symbol"],
            name=row["name"],
            exchange=row["exchange"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    @staticmethod
    def _row_to_candle(row: sqlite3.Row) -> Candle:
        return Candle(
            id=row["id"],
            instrument_id=row["instrument_id"],
            timestamp=datetime.fromisoformat(row["timestamp"]),
            open=Decimal(row["open"]),
            high=Decimal(row["high"]),
            low=Decimal(row["low"]),
            close=Decimal(row["close"]),
            volume=row["volume"],
            timeframe=row["timeframe"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    # ==================== Instruments ====================

    def create_instrument(
        self, symbol: str, name: str, exchange: Optional[str] = None
    ) -> Instrument:
        """Create a new instrument.

        Args:
            symbol: Ticker symbol (unique, case-insensitive).
            name: Display name.
            exchange: Optional exchange tag.

        Returns:
            The stored instrument with its ID.

        Raises:
            ValueError: If the symbol already exists.
        """
        instrument = Instrument(symbol=symbol, name=name, exchange=exchange)
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """
                    INSERT INTO instruments (symbol, name, exchange, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        instrument.symbol,
                        instrument.name,
                        instrument.exchange,
                        _ts(instrument.created_at),
                        _ts(instrument.updated_at),
                    ),
                )
            except sqlite3.IntegrityError as e:
                raise ValueError(f"Instrument {instrument.symbol} already exists") from e
            conn.commit()
            return instrument.model_copy(update={"id": cursor.lastrowid})
        finally:
            conn.close()

    def list_instruments(self) -> list[Instrument]:
        """Get all instruments ordered by symbol."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM instruments ORDER BY symbol")
            return [self._row_to_instrument(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def instrument_exists(self, symbol: str) -> bool:
        """Check whether a symbol is tracked (case-insensitive)."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT 1 FROM instruments WHERE symbol = ? COLLATE NOCASE",
                (symbol.strip(),),
            )
            return cursor.fetchone() is not None
        finally:
            conn.close()

    def get_instrument(self, instrument_id: int) -> Optional[Instrument]:
        """Get an instrument by ID.

        Returns:
            Instrument if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM instruments WHERE id = ?", (instrument_id,))
            row = cursor.fetchone()
            return self._row_to_instrument(row) if row else None
        finally:
            conn.close()

    def get_instrument_by_symbol(self, symbol: str) -> Optional[Instrument]:
        """Get an instrument by symbol, ignoring case."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM instruments WHERE symbol = ? COLLATE NOCASE",
                (symbol.strip(),),
            )
            row = cursor.fetchone()
            return self._row_to_instrument(row) if row else None
        finally:
            conn.close()

    def update_instrument(
        self,
        instrument_id: int,
        name: Optional[str] = None,
        exchange: Optional[str] = None,
    ) -> Instrument:
        """Update an instrument's descriptive fields and refresh updated_at.

        Args:
            instrument_id: Instrument ID.
            name: New display name, unchanged if None.
            exchange: New exchange tag, unchanged if None.

        Returns:
            The updated instrument.

        Raises:
            ValueError: If the instrument does not exist.
        """
        current = self.get_instrument(instrument_id)
        if current is None:
            raise ValueError(f"Instrument {instrument_id} not found")

        updated = Instrument(
            id=current.id,
            symbol=current.symbol,
            name=name if name is not None else current.name,
            exchange=exchange if exchange is not None else current.exchange,
            created_at=current.created_at,
            updated_at=datetime.now(),
        )
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE instruments SET name = ?, exchange = ?, updated_at = ? WHERE id = ?",
                (updated.name, updated.exchange, _ts(updated.updated_at), instrument_id),
            )
            conn.commit()
            return updated
        finally:
            conn.close()

    def delete_instrument(self, instrument_id: int) -> int:
        """Delete an instrument together with all of its candles.

        Args:
            instrument_id: Instrument ID.

        Returns:
            Number of candles removed with the instrument.

        Raises:
            ValueError: If the instrument does not exist.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM candles WHERE instrument_id = ?", (instrument_id,)
            )
            removed = cursor.rowcount
            cursor.execute("DELETE FROM instruments WHERE id = ?", (instrument_id,))
            if cursor.rowcount == 0:
                conn.rollback()
                raise ValueError(f"Instrument {instrument_id} not found")
            conn.commit()
            return removed
        finally:
            conn.close()

    def search_instruments(self, term: str) -> list[Instrument]:
        """Find instruments whose symbol or name contains a term (case-insensitive)."""
        pattern = f"%{term.strip()}%"
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM instruments
                WHERE symbol LIKE ? OR name LIKE ?
                ORDER BY symbol
                """,
                (pattern, pattern),
            )
            return [self._row_to_instrument(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def instruments_by_exchange(self, exchange: str) -> list[Instrument]:
        """Get instruments listed on an exchange."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM instruments WHERE exchange = ? ORDER BY symbol",
                (exchange,),
            )
            return [self._row_to_instrument(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def distinct_exchanges(self) -> list[str]:
        """Get all exchange tags in use, sorted."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT DISTINCT exchange FROM instruments
                WHERE exchange IS NOT NULL
                ORDER BY exchange
                """
            )
            return [row["exchange"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def instruments_by_candle_count(self) -> list[Instrument]:
        """Get all instruments ranked by descending number of candles."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT i.*, COUNT(c.id) AS candle_count
                FROM instruments i
                LEFT JOIN candles c ON c.instrument_id = i.id
                GROUP BY i.id
                ORDER BY candle_count DESC, i.symbol
                """
            )
            return [self._row_to_instrument(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Candles ====================

    def insert_candle(self, candle: Candle) -> Candle:
        """Insert a candle.

        Args:
            candle: Candle to store. Its ID is ignored.

        Returns:
            The stored candle with its ID.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO candles
                (instrument_id, timestamp, open, high, low, close, volume, timeframe, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    candle.instrument_id,
                    _ts(candle.timestamp),
                    str(candle.open),
                    str(candle.high),
                    str(candle.low),
                    str(candle.close),
                    candle.volume,
                    candle.timeframe,
                    _ts(candle.created_at),
                ),
            )
            conn.commit()
            return candle.model_copy(update={"id": cursor.lastrowid})
        finally:
            conn.close()

    def latest_candle(
        self, instrument_id: int, timeframe: Optional[str] = None
    ) -> Optional[Candle]:
        """Get the most recent candle of an instrument.

        Args:
            instrument_id: Instrument ID.
            timeframe: Restrict to one timeframe if given.

        Returns:
            Latest candle by timestamp, None if the instrument has none.
        """
        query = "SELECT * FROM candles WHERE instrument_id = ?"
        params: list = [instrument_id]
        if timeframe is not None:
            query += " AND timeframe = ?"
            params.append(timeframe)
        query += " ORDER BY timestamp DESC, id DESC LIMIT 1"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            row = cursor.fetchone()
            return self._row_to_candle(row) if row else None
        finally:
            conn.close()

    def get_candles(
        self,
        instrument_id: int,
        timeframe: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Candle]:
        """Get candles of an instrument in ascending time order.

        Args:
            instrument_id: Instrument ID.
            timeframe: Optional timeframe filter.
            start: Inclusive lower bound on timestamp.
            end: Inclusive upper bound on timestamp.

        Returns:
            Matching candles.
        """
        query = "SELECT * FROM candles WHERE instrument_id = ?"
        params: list = [instrument_id]
        if timeframe is not None:
            query += " AND timeframe = ?"
            params.append(timeframe)
        if start is not None:
            query += " AND timestamp >= ?"
            params.append(_ts(start))
        if end is not None:
            query += " AND timestamp <= ?"
            params.append(_ts(end))
        query += " ORDER BY timestamp, id"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_candle(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def recent_candles(
        self, instrument_id: int, limit: int = 20, offset: int = 0
    ) -> list[Candle]:
        """Get one page of an instrument's candles, newest first."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT * FROM candles
                WHERE instrument_id = ?
                ORDER BY timestamp DESC, id DESC
                LIMIT ? OFFSET ?
                """,
                (instrument_id, limit, offset),
            )
            return [self._row_to_candle(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def count_candles(self, instrument_id: Optional[int] = None) -> int:
        """Count candles of one instrument, or all candles if no ID is given."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            if instrument_id is None:
                cursor.execute("SELECT COUNT(*) AS n FROM candles")
            else:
                cursor.execute(
                    "SELECT COUNT(*) AS n FROM candles WHERE instrument_id = ?",
                    (instrument_id,),
                )
            return cursor.fetchone()["n"]
        finally:
            conn.close()

    def distinct_timeframes(self, instrument_id: int) -> list[str]:
        """Get the distinct timeframe labels present for an instrument."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT DISTINCT timeframe FROM candles
                WHERE instrument_id = ?
                ORDER BY timeframe
                """,
                (instrument_id,),
            )
            return [row["timeframe"] for row in cursor.fetchall()]
        finally:
            conn.close()

    def average_close(
        self, instrument_id: int, start: datetime, end: datetime
    ) -> Optional[Decimal]:
        """Average closing price of an instrument within a time range.

        Returns:
            The average rounded to two decimals, None if no candles match.
        """
        candles = self.get_candles(instrument_id, start=start, end=end)
        if not candles:
            return None
        total = sum((c.close for c in candles), Decimal("0"))
        return to_price(total / len(candles))

    def delete_candles_older_than(self, cutoff: datetime) -> int:
        """Delete every candle with a timestamp strictly before the cutoff.

        Args:
            cutoff: Retention cutoff.

        Returns:
            Number of deleted candles.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM candles WHERE timestamp < ?", (_ts(cutoff),))
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
