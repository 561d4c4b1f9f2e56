"""Table-size clamping and prime search helpers."""

from __future__ import annotations

import logging
import math
from typing import Any

logger = logging.getLogger("hashlab")

MIN_TABLE_SIZE = 3
MAX_TABLE_SIZE = 199


def clamp_table_size(value: Any) -> int:
    """Clamp ``value`` into ``[MIN_TABLE_SIZE, MAX_TABLE_SIZE]``.

    Non-numeric and non-finite inputs fall back to the minimum size instead of
    raising; callers never see an invalid size.
    """

    if isinstance(value, int) and not isinstance(value, bool):
        clamped = min(max(value, MIN_TABLE_SIZE), MAX_TABLE_SIZE)
        if clamped != value:
            logger.debug("Clamped out-of-range table size to %d", clamped)
        return clamped
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        logger.debug("Table size %r is not numeric; using %d", value, MIN_TABLE_SIZE)
        return MIN_TABLE_SIZE
    except OverflowError:
        clamped = MAX_TABLE_SIZE if value > 0 else MIN_TABLE_SIZE
        logger.debug("Table size overflows a float; using %d", clamped)
        return clamped
    if not math.isfinite(numeric):
        logger.debug("Table size %r is not finite; using %d", value, MIN_TABLE_SIZE)
        return MIN_TABLE_SIZE
    clamped = min(max(math.floor(numeric), MIN_TABLE_SIZE), MAX_TABLE_SIZE)
    if clamped != numeric:
        logger.debug("Clamped table size %r to %d", value, clamped)
    return clamped


def is_prime(n: int) -> bool:
    if n <= 1:
        return False
    if n <= 3:
        return True
    if n % 2 == 0 or n % 3 == 0:
        return False
    i = 5
    while i * i <= n:
        if n % i == 0 or n % (i + 2) == 0:
            return False
        i += 6
    return True


def next_prime(value: Any) -> int:
    """Smallest prime >= the clamped value, capped at ``MAX_TABLE_SIZE``."""

    candidate = clamp_table_size(value)
    if candidate % 2 == 0:
        candidate += 1
    while candidate <= MAX_TABLE_SIZE:
        if is_prime(candidate):
            return candidate
        candidate += 2
    return MAX_TABLE_SIZE


def previous_prime(value: Any) -> int:
    """Largest prime <= the clamped value, floored at ``MIN_TABLE_SIZE``."""

    candidate = clamp_table_size(value)
    if candidate <= MIN_TABLE_SIZE:
        return MIN_TABLE_SIZE
    if candidate % 2 == 0:
        candidate -= 1
    while candidate >= MIN_TABLE_SIZE:
        if is_prime(candidate):
            return candidate
        candidate -= 2
    return MIN_TABLE_SIZE


__all__ = [
    "MIN_TABLE_SIZE",
    "MAX_TABLE_SIZE",
    "clamp_table_size",
    "is_prime",
    "next_prime",
    "previous_prime",
]
