"""Trend summary data model."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class TrendSummary(BaseModel):
    """Aggregated candle history for one instrument."""

    instrument_id: int = Field(..., description="Instrument ID")
    symbol: str = Field(..., description="Ticker symbol")
    name: str = Field(..., description="Display name")
    candle_count: int = Field(..., ge=0, description="Total stored candles")
    timeframes: frozenset[str] = Field(
        default_factory=frozenset, description="Distinct timeframe labels"
    )
    latest_close: Optional[Decimal] = Field(
        default=None, description="Close of the most recent candle"
    )
    average_close: Optional[Decimal] = Field(
        default=None, description="Average close over the trailing window"
    )

    model_config = {"frozen": True}
