"""Instrument data model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Instrument(BaseModel):
    """Represents a tracked tradable symbol."""

    id: Optional[int] = Field(default=None, description="Database ID")
    symbol: str = Field(..., min_length=1, max_length=20, description="Ticker symbol")
    name: str = Field(..., min_length=1, description="Display name")
    exchange: Optional[str] = Field(default=None, description="Listing exchange")
    created_at: datetime = Field(
        default_factory=datetime.now, description="Creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=datetime.now, description="Last mutation timestamp"
    )

    model_config = {"frozen": True}

    @field_validator("symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("symbol must not be blank")
        return value
