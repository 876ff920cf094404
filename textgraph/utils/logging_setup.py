"""Loguru sink configuration shared by the CLI and pipeline entry points."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"
)


def setup_logging(level: str = "INFO", *, log_file: Optional[str | Path] = None) -> None:
    """Replace Loguru's default sink with a stderr sink and an optional file sink."""
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level)

    if log_file:
        target = Path(log_file)
        target.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(target),
            level=level,
            rotation="10 MB",
            retention=3,
            compression="zip",
        )
