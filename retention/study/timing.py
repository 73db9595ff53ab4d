"""
Response-Time Classifier.

Buckets an answer's elapsed time against a target duration. A quick correct
answer is evidence of confident recall; a slow one is evidence of effortful
reconstruction.
"""

from __future__ import annotations

from retention.core.models import TimingClass
from retention.core.policy import PolicyConfig


def resolve_target_sec(target_sec: float | None, policy: PolicyConfig) -> float:
    """Item-specific target when usable, else the global policy target."""
    if target_sec is None or target_sec <= 0:
        return policy.time_target_sec
    return float(target_sec)


def classify_response_time(
    time_sec: float,
    target_sec: float | None,
    policy: PolicyConfig,
) -> TimingClass:
    """
    Classify an answer as fast, normal or slow.

    Args:
        time_sec: Seconds the learner took (negative clamps to 0)
        target_sec: Item-specific target; None or <= 0 uses the policy default
        policy: Supplies rt_fast / rt_slow fractions

    Returns:
        TimingClass.FAST if time <= target * rt_fast,
        TimingClass.SLOW if time >= target * rt_slow,
        else TimingClass.NORMAL
    """
    target = resolve_target_sec(target_sec, policy)
    elapsed = max(0.0, time_sec)

    if elapsed <= target * policy.rt_fast:
        return TimingClass.FAST
    if elapsed >= target * policy.rt_slow:
        return TimingClass.SLOW
    return TimingClass.NORMAL
