"""
Lightweight logging utilities for the Tide indexer.

Provides a consistent logger with a simple console handler and optional
log-level override via the TIDE_LOG_LEVEL environment variable.
"""

import logging
import os
from typing import Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(
    name: Optional[str] = None, level: Optional[str] = None
) -> logging.Logger:
    """Get a configured logger with a stream handler.

    The first time a logger is created, a StreamHandler is attached with a
    plain-text formatter. Subsequent calls reuse the existing configuration.

    Log level can be overridden with the TIDE_LOG_LEVEL environment variable,
    or explicitly with ``level``.
    """
    logger = logging.getLogger(name if name else __name__)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(handler)

        level_str = (level or os.getenv("TIDE_LOG_LEVEL", "INFO")).upper()
        logger.setLevel(getattr(logging, level_str, logging.INFO))
        logger.propagate = False
    elif level:
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    return logger


def get_silent_logger(name: str = "tide_indexer.silent") -> logging.Logger:
    """Get a logger that discards every record (used by tests)."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    logger.propagate = False
    return logger
