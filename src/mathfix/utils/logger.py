"""Minimal logging utilities for mathfix.

Provides a simple get_logger function that wraps the standard library logging.

Example:
    >>> from mathfix.utils.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Scanning run")
"""

from __future__ import annotations

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger for the given name.

    Returns a standard library logger with the "mathfix." prefix.

    Args:
        name: Logger name (typically __name__)

    Returns:
        logging.Logger instance

    Example:
        >>> logger = get_logger("mymodule")
        >>> logger.name
        'mathfix.mymodule'
    """
    if not (name == "mathfix" or name.startswith("mathfix.")):
        name = f"mathfix.{name}"
    return logging.getLogger(name)
