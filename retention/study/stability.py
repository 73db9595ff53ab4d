"""
Stability Updater.

The reinforcement rule: after each attempt the memory-stability estimate
grows multiplicatively on success and shrinks on failure.

Growth rate on success:
    alpha = alpha_{hard|good|easy}            (by self-rating)
          + k_rt_bonus                        (fast answer)
          * (1 - k_rt_slow_penalty), >= alpha_hard   (slow answer)
          + k_long_gap                        (recalled after drifting past the plan)

    S' = S * (1 + alpha), clamped to [min_interval_days, cap_S_days]

On failure (wrong answer or an "again" rating):
    S' = max(min_interval_days, S * gamma_fail)
"""

from __future__ import annotations

from datetime import datetime

from loguru import logger

from retention.core.models import SelfEval, TimingClass
from retention.core.policy import PolicyConfig
from retention.core.retention_model import days_between


def is_failed_attempt(was_correct: bool, self_eval_level: int) -> bool:
    """A wrong answer or an 'again' rating both count as a lapse."""
    return not was_correct or SelfEval.coerce(self_eval_level) == SelfEval.AGAIN


def growth_rate(
    self_eval: SelfEval,
    timing_class: TimingClass,
    long_gap: bool,
    policy: PolicyConfig,
) -> float:
    """Effective growth rate for a successful recall."""
    alpha = {
        SelfEval.HARD: policy.alpha_hard,
        SelfEval.GOOD: policy.alpha_good,
        SelfEval.EASY: policy.alpha_easy,
    }.get(self_eval, policy.alpha_hard)

    if timing_class == TimingClass.FAST:
        alpha += policy.k_rt_bonus
    elif timing_class == TimingClass.SLOW:
        alpha = max(policy.alpha_hard, alpha * (1 - policy.k_rt_slow_penalty))

    if long_gap:
        alpha += policy.k_long_gap

    return alpha


def clamp_stability(stability_days: float, policy: PolicyConfig) -> float:
    return min(policy.cap_S_days, max(policy.min_interval_days, stability_days))


def update_stability(
    stability_days: float,
    was_correct: bool,
    self_eval_level: int,
    timing_class: TimingClass,
    long_gap: bool,
    policy: PolicyConfig,
) -> float:
    """
    Compute the post-attempt stability.

    Never raises: out-of-range ratings are treated as 'hard' and a
    non-positive stability restarts from S_default_days.

    Args:
        stability_days: Stability before the attempt
        was_correct: Whether the answer was right
        self_eval_level: 0 again, 1 hard, 2 good, 3 easy
        timing_class: Output of the response-time classifier
        long_gap: Whether the review came well after its planned date
        policy: Growth rates and bounds

    Returns:
        New stability in days within [min_interval_days, cap_S_days]
    """
    if stability_days <= 0:
        logger.debug(f"Stability {stability_days} reset to default {policy.S_default_days}d")
        stability_days = policy.S_default_days

    if self_eval_level not in tuple(SelfEval):
        logger.debug(f"Self-eval level {self_eval_level} out of range, treating as hard")
    self_eval = SelfEval.coerce(self_eval_level)

    if is_failed_attempt(was_correct, self_eval):
        new_stability = max(policy.min_interval_days, stability_days * policy.gamma_fail)
    else:
        alpha = growth_rate(self_eval, timing_class, long_gap, policy)
        new_stability = stability_days * (1 + alpha)

    return clamp_stability(new_stability, policy)


def is_long_gap(
    last_reviewed_at: datetime | None,
    next_review_date: datetime,
    now: datetime,
    policy: PolicyConfig,
) -> bool:
    """
    Whether the learner drifted well past the planned review date.

    True when the time since the last review exceeds the planned interval
    (last review -> scheduled date) by more than ``long_gap_margin`` of it.
    Never-reviewed items have no plan and never count.
    """
    if last_reviewed_at is None:
        return False

    planned = days_between(last_reviewed_at, next_review_date)
    if planned <= 0:
        return False

    elapsed = days_between(last_reviewed_at, now)
    return elapsed > planned * (1 + policy.long_gap_margin)
