"""
Retention Model.

Exponential forgetting curve shared by the scheduler (when to review) and
the mastery estimator (how much of the stored score survives right now).
"""

from __future__ import annotations

import math
from datetime import UTC, datetime

from loguru import logger

SECONDS_PER_DAY = 86400.0

# Stability used when a caller hands us a non-positive value
FALLBACK_STABILITY_DAYS = 1.0


def retrievability(stability_days: float, elapsed_days: float) -> float:
    """
    Calculate retrievability (modeled recall probability).

    Formula: R = e^(-t/S)

    Where:
        R = retrievability
        t = time since last review in days
        S = stability in days

    Args:
        stability_days: Memory stability (days)
        elapsed_days: Days elapsed since last review

    Returns:
        Retrievability in (0, 1]; exactly 1.0 at t = 0
    """
    if stability_days <= 0:
        logger.debug(f"Non-positive stability {stability_days}, using {FALLBACK_STABILITY_DAYS}d")
        stability_days = FALLBACK_STABILITY_DAYS
    if elapsed_days < 0:
        elapsed_days = 0.0
    return math.exp(-elapsed_days / stability_days)


def time_to_retrievability(stability_days: float, target_r: float) -> float:
    """
    Elapsed days at which retrievability decays to ``target_r``.

    Inverse of :func:`retrievability`: t* = -S * ln(target_r).
    """
    if stability_days <= 0:
        stability_days = FALLBACK_STABILITY_DAYS
    return -stability_days * math.log(target_r)


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC so aware and naive values compare."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment


def days_between(start: datetime, end: datetime) -> float:
    """
    Fractional days from ``start`` to ``end``.

    Args:
        start: Earlier timestamp (naive or aware)
        end: Later timestamp (naive or aware)

    Returns:
        Days elapsed as float, never negative
    """
    delta = as_utc(end) - as_utc(start)
    return max(0.0, delta.total_seconds() / SECONDS_PER_DAY)
