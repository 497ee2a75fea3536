"""
Logging configuration for the application.
"""
from __future__ import annotations

import logging
import sys

LOGGER_NAME = "pair_overlap"


def setup_logger(name: str = LOGGER_NAME, level: int | str = logging.INFO) -> logging.Logger:
    """Set up and configure a logger."""
    logger = logging.getLogger(name)

    # Avoid duplicate handlers if logger already exists
    if logger.handlers:
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(console_handler)

    return logger


def get_logger(suffix: str) -> logging.Logger:
    """Child logger, e.g. get_logger("dates") -> "pair_overlap.dates"."""
    return logging.getLogger(f"{LOGGER_NAME}.{suffix}")


# Default logger for the application
logger = setup_logger()
