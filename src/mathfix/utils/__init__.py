"""Utility modules for mathfix.

Provides:
- logger: get_logger for logging
"""

from mathfix.utils.logger import get_logger

__all__ = [
    "get_logger",
]
