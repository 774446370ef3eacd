"""Logging setup and structured event helper."""

import logging
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "trendtracker"


def setup_logging(
    level: int | str = logging.INFO,
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the package logger with a rich console handler.

    Args:
        level: Logging level (int constant or name like 'DEBUG').
        log_file: Optional path of a plain-text log file.
        console: Console to render to, stderr by default.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)

    # Re-running setup replaces handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=True,
        show_path=False,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        logger.addHandler(file_handler)

    return logger


def _format_value(value: Any) -> str:
    if isinstance(value, (set, frozenset)):
        value = sorted(value)
    text = str(value)
    return f'"{text}"' if " " in text else text


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    exc_info: bool = False,
    **fields: Any,
) -> None:
    """Log an event name with key=value context fields.

    The fields are also attached to the record as ``record.fields`` so
    handlers can emit them in a machine-readable form.
    """
    if not logger.isEnabledFor(level):
        return
    parts = [event] + [f"{k}={_format_value(v)}" for k, v in fields.items()]
    logger.log(
        level,
        " ".join(parts),
        exc_info=exc_info,
        extra={"event": event, "fields": fields},
    )
