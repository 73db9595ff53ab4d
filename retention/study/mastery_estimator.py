"""
Mastery Estimator.

Two views of how well an item is known:

- mastery score: persisted, bounded 0-100, moved only by attempts, with
  diminishing returns on gains;
- current domain: read-time projection of the mastery score decayed by the
  forgetting curve since the last review. Never persisted.
"""

from __future__ import annotations

from datetime import datetime

from retention.core.retention_model import days_between, retrievability

MASTERY_MIN = 0.0
MASTERY_MAX = 100.0


def _clamp(score: float) -> float:
    return min(MASTERY_MAX, max(MASTERY_MIN, score))


def apply_attempt(
    mastery_score: float,
    was_correct: bool,
    error_penalty_level: float,
    max_gain_per_session: float,
    diminishing_returns: bool = True,
) -> float:
    """
    Update the stored mastery score after an attempt.

    Success:  m + max_gain * (1 - m/100)   (or + max_gain without diminishing returns)
    Failure:  m * (1 - error_penalty_level)

    Args:
        mastery_score: Score before the attempt (clamped into [0, 100])
        was_correct: Whether the attempt counts as a success
        error_penalty_level: Fraction of the score lost on failure
        max_gain_per_session: Gain at mastery 0
        diminishing_returns: Shrink gains as the score nears 100

    Returns:
        New mastery score within [0, 100]
    """
    current = _clamp(mastery_score)

    if was_correct:
        gain = max_gain_per_session
        if diminishing_returns:
            gain *= 1 - current / MASTERY_MAX
        return _clamp(current + gain)

    penalty = min(1.0, max(0.0, error_penalty_level))
    return _clamp(current * (1 - penalty))


def current_domain(
    mastery_score: float,
    stability_days: float,
    last_reviewed_at: datetime | None,
    now: datetime,
) -> float:
    """
    Project the stored mastery score to ``now``.

    Returns 0 for never-reviewed items. Otherwise the score is scaled by the
    retrievability since the last review, so the value is never above the
    stored score and only decreases until the next attempt.
    """
    if last_reviewed_at is None:
        return 0.0

    elapsed = days_between(last_reviewed_at, now)
    return max(0.0, _clamp(mastery_score) * retrievability(stability_days, elapsed))
