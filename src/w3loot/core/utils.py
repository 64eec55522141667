"""
Utility functions for w3loot.

This module provides:
- Elapsed time formatting
- Replay version formatting
- A timing decorator used by the pipeline
"""

import logging
import time
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

# Type variable for generic decorators
F = TypeVar("F", bound=Callable[..., Any])


def timed(func: F) -> F:
    """
    Decorator to measure and log function execution time at debug level.

    Usage:
        @timed
        def my_function():
            ...
    """

    @wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{func.__name__} completed in {elapsed:.3f}s")
        return result

    return wrapper  # type: ignore


def ms_to_readable_time(milliseconds: int | None) -> str:
    """
    Convert milliseconds to a zero-padded HH:MM:SS string.

    Hours are not capped, so very long games render as e.g. "100:00:00".

    Args:
        milliseconds: Elapsed time in ms

    Returns:
        Formatted time string
    """
    if not milliseconds or milliseconds < 0:
        return "00:00:00"

    remaining = int(milliseconds)
    hours, remaining = divmod(remaining, 3_600_000)
    minutes, remaining = divmod(remaining, 60_000)
    seconds = remaining // 1000
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_version(version: int) -> str:
    """
    Render the sub-header version number as a patch string.

    Classic replays store the minor patch number directly (26 -> "1.26");
    Reforged replays add 10000 to it (10036 -> "1.36").
    """
    if version <= 0:
        return ""
    if version >= 10000:
        return f"1.{version - 10000}"
    return f"1.{version}"
