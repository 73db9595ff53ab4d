"""
Urgency & Priority Classifier.

Evaluated at read time over the item collection to build due-queues and
badges. Nothing here is stored on the item.

Urgency:
- CRITICO: due and domain below critical_domain_threshold, or overdue by
  more than max_lateness_days
- ATENCAO: manual is_critical flag set, not (yet) CRITICO
- OK: otherwise

Priority (higher = more urgent within a tier):
    w.isHot*hot + w.isFundamental*fundamental + w.isCritical*critical
    + w.recentError*recentError + w.lowS*(1 - S/cap_S_days)
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from retention.core.models import LearningItem, Urgency
from retention.core.policy import PolicyConfig
from retention.core.retention_model import as_utc, days_between, retrievability
from retention.study.mastery_estimator import current_domain


def item_domain(item: LearningItem, now: datetime) -> float:
    """Current domain of an item (0 when never reviewed)."""
    if item.is_new:
        return 0.0
    return current_domain(item.mastery_score, item.stability_days, item.last_reviewed_at, now)


def days_overdue(item: LearningItem, now: datetime) -> float:
    """Days past the scheduled date (0 when not yet due)."""
    return days_between(item.next_review_date, now)


def classify_urgency(item: LearningItem, policy: PolicyConfig, now: datetime) -> Urgency:
    """Categorical urgency of ``item`` at ``now``."""
    if item.is_due(now):
        if item_domain(item, now) < policy.critical_domain_threshold:
            return Urgency.CRITICO
        if days_overdue(item, now) > policy.max_lateness_days:
            return Urgency.CRITICO

    if item.is_critical:
        return Urgency.ATENCAO
    return Urgency.OK


def priority_score(item: LearningItem, policy: PolicyConfig) -> float:
    """Weighted sum of manual flags and low stability."""
    w = policy.weights
    low_s = 1 - item.stability_days / policy.cap_S_days
    low_s = min(1.0, max(0.0, low_s))

    return (
        w.is_hot * bool(item.hot_topic)
        + w.is_fundamental * bool(item.is_fundamental)
        + w.is_critical * bool(item.is_critical)
        + w.recent_error * bool(item.recent_error)
        + w.low_s * low_s
    )


def is_near_due(item: LearningItem, policy: PolicyConfig, now: datetime) -> bool:
    """
    Not yet due, but projected recall already fell to r_near or below.

    Items reviewed less than min_interval_days ago never qualify.
    """
    if item.is_new or item.last_reviewed_at is None or item.is_due(now):
        return False
    elapsed = days_between(item.last_reviewed_at, now)
    if elapsed < policy.min_interval_days:
        return False
    return retrievability(item.stability_days, elapsed) <= policy.r_near


def _sort_key(item: LearningItem, policy: PolicyConfig, now: datetime) -> tuple:
    return (
        classify_urgency(item, policy, now).rank,
        -priority_score(item, policy),
        as_utc(item.next_review_date),
        item_domain(item, now),
        item.item_id,
    )


def rank_items(
    items: Iterable[LearningItem],
    policy: PolicyConfig,
    now: datetime,
) -> list[LearningItem]:
    """
    Order items for presentation.

    CRITICO before ATENCAO before OK; within a tier descending priority,
    then most overdue first, then weakest domain first.
    """
    return sorted(items, key=lambda item: _sort_key(item, policy, now))


def rank_due_queue(
    items: Iterable[LearningItem],
    policy: PolicyConfig,
    now: datetime,
    include_near_due: bool = False,
) -> list[LearningItem]:
    """
    Ranked queue of items that should be studied now.

    Keeps due items (plus near-due ones when ``include_near_due``) and
    orders them with :func:`rank_items`. An empty list means nothing needs
    review.
    """
    candidates = [
        item for item in items
        if item.is_due(now) or (include_near_due and is_near_due(item, policy, now))
    ]
    return rank_items(candidates, policy, now)
