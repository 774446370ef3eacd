"""Configuration loading for Trend Tracker.

Settings live in a TOML file (``~/.config/trendtracker/config.toml`` by
default). Every key is optional; a missing file yields the defaults.
"""

from pathlib import Path
from typing import Optional

import toml
from pydantic import BaseModel, Field, ValidationError, model_validator

CONFIG_DIR = Path.home() / ".config" / "trendtracker"
DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.toml"
DEFAULT_DB_PATH = CONFIG_DIR / "trendtracker.db"


class DatabaseSettings(BaseModel):
    """SQLite store settings."""

    path: Path = Field(default=DEFAULT_DB_PATH, description="SQLite database file")
    timeout_seconds: float = Field(
        default=10.0, gt=0, description="Busy timeout for each store call"
    )


class GeneratorSettings(BaseModel):
    """Bounds of the synthetic candle generator."""

    timeframe: str = Field(default="5m", min_length=1)
    seed_price_min: float = Field(default=50.0, gt=0)
    seed_price_max: float = Field(default=500.0, gt=0)
    max_change_percent: float = Field(default=5.0, gt=0, lt=100)
    max_pad: float = Field(default=5.0, ge=0)
    volume_min: int = Field(default=1_000_000, ge=0)
    volume_max: int = Field(default=10_000_000, gt=0)
    random_seed: Optional[int] = Field(
        default=None, description="Seed for reproducible price paths"
    )

    @model_validator(mode="after")
    def _check_ranges(self) -> "GeneratorSettings":
        if self.seed_price_min >= self.seed_price_max:
            raise ValueError("seed_price_min must be below seed_price_max")
        if self.volume_min >= self.volume_max:
            raise ValueError("volume_min must be below volume_max")
        return self


class RetentionSettings(BaseModel):
    """Candle retention settings."""

    horizon_days: int = Field(default=30, gt=0)


class ScheduleSettings(BaseModel):
    """Cadences of the periodic jobs."""

    price_update_minutes: float = Field(default=5.0, gt=0)
    retention_hour: int = Field(default=2, ge=0, le=23)
    retention_minute: int = Field(default=0, ge=0, le=59)
    # 0 = Monday ... 6 = Sunday
    trends_day_of_week: int = Field(default=6, ge=0, le=6)
    trends_hour: int = Field(default=1, ge=0, le=23)
    trends_minute: int = Field(default=0, ge=0, le=59)
    trend_window_days: int = Field(default=7, gt=0)
    timezone: Optional[str] = Field(
        default=None, description="IANA zone for the scheduler, local zone if unset"
    )


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = Field(default="INFO")
    file: Optional[Path] = Field(default=None)


class Settings(BaseModel):
    """Top-level settings."""

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    generator: GeneratorSettings = Field(default_factory=GeneratorSettings)
    retention: RetentionSettings = Field(default_factory=RetentionSettings)
    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        config_path: File to read. Defaults to ~/.config/trendtracker/config.toml.

    Returns:
        Validated settings; defaults if the file does not exist.

    Raises:
        ValueError: If the file cannot be parsed or holds invalid values.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        return Settings()

    try:
        raw = toml.load(path)
    except toml.TomlDecodeError as e:
        raise ValueError(f"Cannot parse {path}: {e}") from e

    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration in {path}:\n{e}") from e


def create_template_config(config_path: Optional[Path] = None) -> Path:
    """Write a template configuration file populated with the defaults.

    Returns:
        Path of the written file.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    template = Settings().model_dump(mode="json", exclude_none=True)

    with open(path, "w") as f:
        toml.dump(template, f)

    return path
