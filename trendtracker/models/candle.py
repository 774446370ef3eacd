"""Candle (OHLCV) data model."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

PRICE_QUANTUM = Decimal("0.01")


def to_price(value: Any, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Convert a number to a two-decimal price.

    Pass ``rounding=ROUND_DOWN`` to keep a value drawn from a half-open
    range below its upper bound.
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(PRICE_QUANTUM, rounding=rounding)


class Candle(BaseModel):
    """Represents a single OHLCV candle owned by an instrument."""

    id: Optional[int] = Field(default=None, description="Database ID")
    instrument_id: int = Field(..., description="Owning instrument ID")
    timestamp: datetime = Field(..., description="Candle timestamp")
    open: Decimal = Field(..., ge=0, description="Opening price")
    high: Decimal = Field(..., ge=0, description="High price")
    low: Decimal = Field(..., ge=0, description="Low price")
    close: Decimal = Field(..., ge=0, description="Closing price")
    volume: int = Field(..., ge=0, description="Trading volume")
    timeframe: str = Field(..., min_length=1, description="Bucket label (e.g. '5m')")
    created_at: datetime = Field(
        default_factory=datetime.now, description="Row creation timestamp"
    )

    model_config = {"frozen": True}

    @field_validator("open", "high", "low", "close", mode="before")
    @classmethod
    def _quantize(cls, value: Any) -> Decimal:
        return to_price(value)

    @model_validator(mode="after")
    def _check_range(self) -> "Candle":
        if self.high < max(self.open, self.close):
            raise ValueError("high must be >= max(open, close)")
        if self.low > min(self.open, self.close):
            raise ValueError("low must be <= min(open, close)")
        return self
