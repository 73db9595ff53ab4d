"""
Retention Engine - the single write path for review state.

Combines:
- Response-time classification
- Stability updates (reinforcement rule)
- Mastery updates
- Interval scheduling
- Read-time domain, urgency and queue ranking

Every operation is a pure function of (item snapshot, event, now, policy).
Updates return a complete new snapshot; persisting it (alone or in a
session batch) is the caller's job.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from loguru import logger

from retention.core.clock import Clock, SystemClock
from retention.core.models import (
    AttemptRecord,
    LearningItem,
    LevelInfo,
    SelfEval,
    TimingClass,
    Urgency,
)
from retention.core.policy import DEFAULT_POLICY, PolicyConfig
from retention.core.retention_model import as_utc
from retention.study import mastery_estimator, progression, scheduler, urgency
from retention.study.session_queue import QueueMode, SessionQueue, SubjectKey, build_session_queue
from retention.study.stability import is_failed_attempt, is_long_gap, update_stability
from retention.study.timing import classify_response_time, resolve_target_sec


@dataclass(frozen=True)
class UpdatedItem:
    """Result of recording an attempt."""

    item: LearningItem
    attempt: AttemptRecord
    timing_class: TimingClass
    interval_days: float
    long_gap: bool = False

    @property
    def next_review_date(self) -> datetime:
        return self.item.next_review_date

    @property
    def stability_days(self) -> float:
        return self.item.stability_days

    @property
    def mastery_score(self) -> float:
        return self.item.mastery_score


def record_attempt(
    item: LearningItem,
    was_correct: bool,
    self_eval_level: int,
    time_sec: float,
    policy: PolicyConfig,
    now: datetime,
) -> UpdatedItem:
    """
    Apply one completed attempt to an item.

    Args:
        item: Snapshot before the attempt (left untouched)
        was_correct: Whether the answer was right
        self_eval_level: 0 again, 1 hard, 2 good, 3 easy (others count as hard)
        time_sec: Seconds spent answering
        policy: Scheduling policy snapshot
        now: Attempt time

    Returns:
        UpdatedItem with the new snapshot, the appended AttemptRecord and
        the timing / interval metadata
    """
    now = as_utc(now)
    self_eval = SelfEval.coerce(self_eval_level)
    failed = is_failed_attempt(was_correct, self_eval)

    target_sec = resolve_target_sec(item.target_sec, policy)
    timing_class = classify_response_time(time_sec, target_sec, policy)
    long_gap = is_long_gap(item.last_reviewed_at, item.next_review_date, now, policy)

    new_stability = update_stability(
        item.stability_days, was_correct, self_eval, timing_class, long_gap, policy
    )
    new_mastery = mastery_estimator.apply_attempt(
        item.mastery_score,
        not failed,
        policy.error_penalty_level,
        policy.max_gain_per_session,
        diminishing_returns=policy.diminishing_returns,
    )

    if failed:
        interval = scheduler.failure_interval(policy)
    else:
        interval = scheduler.next_review_interval(
            new_stability, now, policy, hot_topic=item.hot_topic
        )

    attempt = AttemptRecord(
        date=now,
        was_correct=was_correct,
        mastery_after=new_mastery,
        stability_after=new_stability,
        time_sec=max(0.0, float(time_sec)),
        self_eval_level=self_eval,
        timing_class=timing_class,
        target_sec=target_sec,
        interval_days=interval,
    )

    updated = replace(
        item,
        stability_days=new_stability,
        mastery_score=new_mastery,
        next_review_date=now + timedelta(days=interval),
        last_reviewed_at=now,
        last_attempt_date=now.date(),
        last_was_correct=was_correct,
        total_attempts=item.total_attempts + 1,
        correct_streak=0 if failed else item.correct_streak + 1,
        attempt_history=item.attempt_history + (attempt,),
    )

    logger.debug(
        f"Item {item.item_id}: {self_eval.grade}/{timing_class.value} "
        f"S {item.stability_days:.2f}->{new_stability:.2f}d, "
        f"mastery {item.mastery_score:.1f}->{new_mastery:.1f}, next in {interval:.2f}d"
    )

    return UpdatedItem(
        item=updated,
        attempt=attempt,
        timing_class=timing_class,
        interval_days=interval,
        long_gap=long_gap,
    )


def project_domain(item: LearningItem, policy: PolicyConfig, now: datetime) -> float:
    """Current domain (decayed mastery) of ``item`` at ``now``."""
    return urgency.item_domain(item, now)


def classify_urgency(item: LearningItem, policy: PolicyConfig, now: datetime) -> Urgency:
    return urgency.classify_urgency(item, policy, now)


def rank_due_queue(
    items: Iterable[LearningItem],
    policy: PolicyConfig,
    now: datetime,
    include_near_due: bool = False,
) -> list[LearningItem]:
    return urgency.rank_due_queue(items, policy, now, include_near_due=include_near_due)


def level_info(xp: float) -> LevelInfo:
    return progression.level_info(xp)


class RetentionEngine:
    """
    Engine facade bound to a policy and a clock.

    Session code holds one of these and calls it per attempt; the clock is
    injected so replays and tests stay deterministic.
    """

    def __init__(self, policy: PolicyConfig | None = None, clock: Clock | None = None):
        self.policy = policy or DEFAULT_POLICY
        self.clock = clock or SystemClock()

    def _now(self, now: datetime | None) -> datetime:
        return as_utc(now) if now is not None else self.clock.now()

    def new_item(self, item_id: str, now: datetime | None = None, **kwargs) -> LearningItem:
        """Fresh item carrying this engine's default stability, due now."""
        return LearningItem.new(item_id, self.policy, self._now(now), **kwargs)

    def record_attempt(
        self,
        item: LearningItem,
        was_correct: bool,
        self_eval_level: int,
        time_sec: float,
        now: datetime | None = None,
    ) -> UpdatedItem:
        return record_attempt(
            item, was_correct, self_eval_level, time_sec, self.policy, self._now(now)
        )

    def project_domain(self, item: LearningItem, now: datetime | None = None) -> float:
        return project_domain(item, self.policy, self._now(now))

    def classify_urgency(self, item: LearningItem, now: datetime | None = None) -> Urgency:
        return classify_urgency(item, self.policy, self._now(now))

    def priority(self, item: LearningItem) -> float:
        return urgency.priority_score(item, self.policy)

    def rank_due_queue(
        self,
        items: Iterable[LearningItem],
        now: datetime | None = None,
        include_near_due: bool = False,
    ) -> list[LearningItem]:
        return rank_due_queue(items, self.policy, self._now(now), include_near_due=include_near_due)

    def build_session_queue(
        self,
        items: Iterable[LearningItem],
        session_size: int = 20,
        new_content_limit: float = 0.1,
        mode: QueueMode = QueueMode.STANDARD,
        now: datetime | None = None,
        include_near_due: bool = False,
        subject_of: SubjectKey | None = None,
    ) -> SessionQueue:
        """Bounded study session; see :func:`retention.study.session_queue.build_session_queue`."""
        return build_session_queue(
            items,
            self.policy,
            self._now(now),
            session_size=session_size,
            new_content_limit=new_content_limit,
            mode=mode,
            include_near_due=include_near_due,
            subject_of=subject_of,
        )

    @staticmethod
    def level_info(xp: float) -> LevelInfo:
        return level_info(xp)
