"""
Shared utilities for the Pokal statistics engine.

This module provides common functions used across multiple modules
to avoid code duplication.
"""

import logging
import math
import numbers
from collections.abc import Iterable

from pokal.config import ALLOWED_STATUSES


# --- Logging Setup ---
def setup_logging(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
    """
    Configure and return a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ from the calling module)
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger


# --- Math Helpers ---
def mean(values: Iterable[float]) -> float:
    """Arithmetic mean, 0 for an empty sequence."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std(values: Iterable[float]) -> float:
    """Population standard deviation (divides by N), 0 for an empty sequence."""
    values = list(values)
    if not values:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def decade_of(year: int) -> int:
    """Return the first year of the calendar decade (2017 -> 2010)."""
    return (year // 10) * 10


def surname_of(display_name: str) -> str:
    """Last whitespace-delimited word of a display name."""
    parts = display_name.split()
    return parts[-1] if parts else ""


def make_nickname(display_name: str) -> str:
    """'Olov Melander' -> 'Olov M.'; single names are returned as-is."""
    parts = display_name.split()
    if not parts:
        return ""
    if len(parts) == 1:
        return parts[0]
    return f"{parts[0]} {parts[-1][0]}."


# --- Validation ---
def validate_status(status: str) -> None:
    """
    Validate that a participant status is allowed.

    Args:
        status: Status name to validate

    Raises:
        ValueError: If status is not in ALLOWED_STATUSES
    """
    if status not in ALLOWED_STATUSES:
        raise ValueError(
            f"Invalid status: '{status}'. "
            f"Allowed values: {', '.join(sorted(ALLOWED_STATUSES))}"
        )


def is_integer(value) -> bool:
    """True for int-like values (including numpy integers), False for bools."""
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def validate_rank(rank, participant_id, competition_id) -> int:
    """
    Validate that a rank is a positive integer.

    Returns:
        The rank as a plain int (numpy integers from a DataFrame are converted)

    Raises:
        ValueError: If rank is not an integer >= 1
    """
    if not is_integer(rank) or rank < 1:
        raise ValueError(
            f"Invalid rank {rank!r} for participant '{participant_id}' "
            f"in competition '{competition_id}'. Ranks must be integers >= 1"
        )
    return int(rank)


__all__ = [
    # Logging
    'setup_logging',
    # Math
    'mean',
    'population_std',
    'decade_of',
    # Names
    'surname_of',
    'make_nickname',
    # Validation
    'is_integer',
    'validate_status',
    'validate_rank',
]
