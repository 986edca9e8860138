"""Logging configuration for Car Thief."""

import logging
import sys
from datetime import datetime
from pathlib import Path


def setup_logging(
    log_dir: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
    file: bool = True,
) -> logging.Logger:
    """Set up application logging.

    Args:
        log_dir: Directory for log files. If None, uses default data dir.
        level: Logging level (default: INFO)
        console: Whether to log to console
        file: Whether to log to file

    Returns:
        Root logger instance
    """
    logger = logging.getLogger("carthief")
    logger.setLevel(level)

    # Clear any existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file:
        if log_dir is None:
            # Import here to avoid circular imports
            from ..config.settings import get_settings

            log_dir = get_settings().data_dir / "logs"

        log_dir.mkdir(parents=True, exist_ok=True)

        log_file = log_dir / f"carthief_{datetime.now().strftime('%Y%m%d')}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (e.g., "missions.engine", "systems.heat")

    Returns:
        Logger instance
    """
    return logging.getLogger(f"carthief.{name}")
