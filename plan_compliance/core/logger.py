"""Loguru sinks for the compliance engine.

Library modules only call `from loguru import logger`; sinks are installed by
the entry point (the CLI) through `setup_logger` or `configure_logging`.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from plan_compliance.config.settings import Settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Replace all sinks with a stderr sink and an optional rotating file sink.

    Args:
        level: Minimum level for both sinks
        log_file: Path of the rotating log file; console only when None
        rotation: When the file rotates (e.g. "10 MB", "1 day")
        retention: How long rotated files are kept (e.g. "7 days")
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=sys.stderr.isatty())

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            encoding="utf-8",
        )

    logger.debug(f"Logging configured: level={level} file={log_file}")


def configure_logging(settings: Settings, debug: bool = False) -> None:
    """Install sinks from settings, forcing DEBUG when requested."""
    setup_logger(level="DEBUG" if debug else settings.log_level, log_file=settings.log_file)
