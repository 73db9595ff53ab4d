"""
Review Status - badges, labels and collection statistics.

Presentation metadata derived at read time:
- ReviewStatus: OVERDUE / NOW / TODAY / FUTURE around the due time
- MasteryTier: GOLD / SILVER / BRONZE bands of the current domain
- Aggregated stats and per-item history summaries for dashboards

Status windows:
    more than 6h late          -> OVERDUE
    6h late .. 12h early       -> NOW
    later the same day         -> TODAY
    otherwise                  -> FUTURE
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum

from retention.core.models import LearningItem, TimingClass
from retention.core.policy import PolicyConfig
from retention.core.retention_model import as_utc
from retention.study.stability import is_failed_attempt
from retention.study.urgency import item_domain

GRACE_HOURS = 6
WINDOW_HOURS = 12
GOLD_WINDOW_HOURS = 12


class ReviewStatus(str, Enum):
    """Where an item sits relative to its scheduled review."""

    OVERDUE = "overdue"
    NOW = "now"
    TODAY = "today"
    FUTURE = "future"

    @property
    def base_priority(self) -> int:
        return {
            ReviewStatus.OVERDUE: 100,
            ReviewStatus.NOW: 80,
            ReviewStatus.TODAY: 50,
            ReviewStatus.FUTURE: 10,
        }[self]


class MasteryTier(str, Enum):
    """Medal band for a 0-100 domain / mastery value."""

    GOLD = "gold"  # 85-100
    SILVER = "silver"  # 70-84
    BRONZE = "bronze"  # <70

    @classmethod
    def from_score(cls, score: float) -> MasteryTier:
        if score >= 85:
            return cls.GOLD
        elif score >= 70:
            return cls.SILVER
        return cls.BRONZE

    @property
    def bonus(self) -> int:
        """Lower tiers get pushed up the list."""
        return {MasteryTier.GOLD: 0, MasteryTier.SILVER: 10, MasteryTier.BRONZE: 20}[self]

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryTier.GOLD: "yellow",
            MasteryTier.SILVER: "white",
            MasteryTier.BRONZE: "dark_orange",
        }[self]


def review_status(next_review_date: datetime, now: datetime) -> ReviewStatus:
    """Classify the due time of an item relative to ``now``."""
    next_review = as_utc(next_review_date)
    now = as_utc(now)
    diff_hours = (next_review - now).total_seconds() / 3600

    if diff_hours < -GRACE_HOURS:
        return ReviewStatus.OVERDUE
    if diff_hours <= WINDOW_HOURS:
        return ReviewStatus.NOW
    if next_review.date() == now.date():
        return ReviewStatus.TODAY
    return ReviewStatus.FUTURE


def status_priority(status: ReviewStatus, tier: MasteryTier) -> int:
    """Badge sort score: due-ness first, weak tiers bumped up."""
    return status.base_priority + tier.bonus


def format_review_label(status: ReviewStatus, next_review_date: datetime, now: datetime) -> str:
    """
    Short human label for a review badge.

    Examples: "NOW", "OVERDUE 3d", "TODAY 18:30", "IN 4d"
    """
    if status == ReviewStatus.NOW:
        return "NOW"

    next_review = as_utc(next_review_date)
    diff_days = (next_review - as_utc(now)).total_seconds() / 86400

    if status == ReviewStatus.OVERDUE:
        late = abs(math.floor(diff_days))
        return f"OVERDUE {late}d" if late > 0 else "OVERDUE"

    if status == ReviewStatus.TODAY:
        return f"TODAY {next_review:%H:%M}"

    return f"IN {max(1, math.ceil(diff_days))}d"


def is_gold_window(next_review_date: datetime, now: datetime) -> bool:
    """Within 12 hours either side of the due time: the best moment to review."""
    delta = abs(as_utc(now) - as_utc(next_review_date))
    return delta <= timedelta(hours=GOLD_WINDOW_HOURS)


@dataclass(frozen=True)
class ItemBadge:
    """Everything a list row needs to render an item's review state."""

    status: ReviewStatus
    tier: MasteryTier
    priority: int
    label: str
    domain: float


def item_badge(item: LearningItem, now: datetime) -> ItemBadge:
    domain = item_domain(item, now)
    status = review_status(item.next_review_date, now)
    tier = MasteryTier.from_score(domain)
    return ItemBadge(
        status=status,
        tier=tier,
        priority=status_priority(status, tier),
        label=format_review_label(status, item.next_review_date, now),
        domain=domain,
    )


# =============================================================================
# Collection statistics
# =============================================================================


@dataclass
class AggregatedStats:
    """Collection-level figures for dashboards."""

    total: int = 0
    attempted: int = 0
    avg_mastery: float = 0.0
    avg_domain: float = 0.0
    error_count: int = 0
    critical_count: int = 0
    breakdown: dict[ReviewStatus, int] = field(
        default_factory=lambda: {status: 0 for status in ReviewStatus}
    )


def compute_aggregated_stats(
    items: Iterable[LearningItem],
    policy: PolicyConfig,
    now: datetime,
) -> AggregatedStats:
    """
    Summarize a collection of items.

    Averages cover attempted items only; never-reviewed items count towards
    ``total`` and the status breakdown.
    """
    stats = AggregatedStats()
    mastery_sum = 0.0
    domain_sum = 0.0

    for item in items:
        stats.total += 1
        stats.breakdown[review_status(item.next_review_date, now)] += 1

        if item.total_attempts > 0:
            stats.attempted += 1
            mastery_sum += item.mastery_score
            domain_sum += item_domain(item, now)
            if not item.last_was_correct:
                stats.error_count += 1

        if item.is_critical:
            stats.critical_count += 1

    if stats.attempted:
        stats.avg_mastery = mastery_sum / stats.attempted
        stats.avg_domain = domain_sum / stats.attempted

    return stats


def aggregate_domain(items: Sequence[LearningItem], policy: PolicyConfig, now: datetime) -> int:
    """Rounded average domain of the attempted items (0 for an empty list)."""
    if not items:
        return 0
    return round(compute_aggregated_stats(items, policy, now).avg_domain)


# =============================================================================
# History summary
# =============================================================================


@dataclass(frozen=True)
class HistorySummary:
    """Digest of an item's attempt log."""

    attempts: int
    correct: int
    lapses: int
    accuracy: float
    mean_time_sec: float
    timing_breakdown: dict[TimingClass, int]


def summarize_history(item: LearningItem) -> HistorySummary:
    """
    Walk the attempt log once.

    A lapse is any attempt that reset stability (wrong answer or an 'again'
    rating), so ``lapses`` can exceed ``attempts - correct``.
    """
    history = item.attempt_history
    if not history:
        return HistorySummary(
            attempts=0,
            correct=0,
            lapses=0,
            accuracy=0.0,
            mean_time_sec=0.0,
            timing_breakdown={timing: 0 for timing in TimingClass},
        )

    correct = sum(1 for a in history if a.was_correct)
    lapses = sum(1 for a in history if is_failed_attempt(a.was_correct, a.self_eval_level))
    timings = Counter(a.timing_class for a in history)

    return HistorySummary(
        attempts=len(history),
        correct=correct,
        lapses=lapses,
        accuracy=correct / len(history),
        mean_time_sec=sum(a.time_sec for a in history) / len(history),
        timing_breakdown={timing: timings.get(timing, 0) for timing in TimingClass},
    )
