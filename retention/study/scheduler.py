"""
Review Scheduler.

Turns a stability estimate into a concrete next-review date:

1. t* = -S * ln(target_R)  (elapsed time at which recall falls to target)
2. clamp t* to [min_interval_days, cap_S_days]
3. hot-topic items never wait longer than max_hot_days
4. compress on the exam day / eve, never below min_interval_days
"""

from __future__ import annotations

from datetime import datetime, timedelta

from loguru import logger

from retention.core.policy import PolicyConfig
from retention.core.retention_model import as_utc, time_to_retrievability


def _bound(interval_days: float, policy: PolicyConfig) -> float:
    return min(policy.cap_S_days, max(policy.min_interval_days, interval_days))


def next_review_interval(
    stability_days: float,
    now: datetime,
    policy: PolicyConfig,
    hot_topic: bool = False,
) -> float:
    """
    Days until the next review after a successful attempt.

    Args:
        stability_days: Stability produced by the stability updater
        now: Time of the attempt; its calendar date drives exam compression
        policy: Retention target, bounds and exam factors
        hot_topic: Cap the interval at max_hot_days

    Returns:
        Interval in days within [min_interval_days, cap_S_days]
    """
    interval = _bound(time_to_retrievability(stability_days, policy.target_r), policy)

    if hot_topic:
        interval = min(interval, policy.max_hot_days)

    factor = policy.exam_factor_for(as_utc(now).date())
    if factor != 1.0:
        logger.debug(f"Exam proximity: compressing {interval:.2f}d by {factor}")
        interval *= factor

    return _bound(interval, policy)


def failure_interval(policy: PolicyConfig) -> float:
    """Days until the next review after a failed attempt."""
    return _bound(policy.fail_review_delay_days, policy)


def next_review_date(
    stability_days: float,
    now: datetime,
    policy: PolicyConfig,
    hot_topic: bool = False,
) -> datetime:
    """``now`` plus :func:`next_review_interval`."""
    interval = next_review_interval(stability_days, now, policy, hot_topic=hot_topic)
    return as_utc(now) + timedelta(days=interval)
