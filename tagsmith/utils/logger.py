"""Logging setup shared by the Tagsmith command line and library code."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from tagsmith.utils.constants import APP_NAME

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(module)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    log_level: str = "INFO",
    log_file: str | None = None,
) -> logging.Logger:
    """Configure the application logger once and return it.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR). Unknown names
            fall back to INFO.
        log_file: Optional log file; its parent folder is created on demand.

    Returns:
        The ``Tagsmith`` logger.
    """
    logger = logging.getLogger(APP_NAME)

    # Repeated calls keep the handlers installed by the first one
    if logger.handlers:
        return logger

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(module_name: str | None = None) -> logging.Logger:
    """Return the child logger for *module_name* (e.g. ``core.node``)."""
    base = logging.getLogger(APP_NAME)
    if module_name:
        return base.getChild(module_name)
    return base
