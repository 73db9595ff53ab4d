"""
Session Queue Builder.

Assembles a bounded study session from the item collection:

- standard: due items ranked within each subject, subjects taken in turn,
  never-reviewed items fill in up to the new-content limit
- exam: reviewed items by exam priority (hot topics weighted up), then new
  items up to the new-content limit
- critical: items missed last time, with low stability, or marked hot, by
  reinforcement priority

The result carries the due/new/critical mix and a domain preview for the
session header.
"""

from __future__ import annotations

import math
import statistics
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from loguru import logger

from retention.core.models import LearningItem
from retention.core.policy import PolicyConfig
from retention.core.retention_model import days_between, retrievability
from retention.study.urgency import days_overdue, is_near_due, item_domain, rank_items

DEFAULT_SUBJECT = "default"

SubjectKey = Callable[[LearningItem], str]


class QueueMode(str, Enum):
    """How a study session is assembled."""

    STANDARD = "standard"
    EXAM = "exam"
    CRITICAL = "critical"


class DueReason(str, Enum):
    """Why an item made it into the session."""

    DUE = "due"
    NEW = "new"
    CRITICAL = "critical"


@dataclass(frozen=True)
class QueueEntry:
    item: LearningItem
    reason: DueReason
    domain: float
    priority: float


@dataclass(frozen=True)
class QueueMix:
    """Counts per reason."""

    due: int = 0
    new: int = 0
    critical: int = 0

    @property
    def total(self) -> int:
        return self.due + self.new + self.critical

    @property
    def pct_new(self) -> float:
        return self.new / self.total * 100 if self.total else 0.0


@dataclass(frozen=True)
class SessionQueue:
    """An ordered study session plus its summary figures."""

    mode: QueueMode
    entries: tuple[QueueEntry, ...]
    mix: QueueMix

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def items(self) -> list[LearningItem]:
        return [entry.item for entry in self.entries]

    @property
    def mean_domain(self) -> float:
        if not self.entries:
            return 0.0
        return statistics.fmean(entry.domain for entry in self.entries)

    @property
    def median_domain(self) -> float:
        """Upper median, so the value is always one of the entries' domains."""
        if not self.entries:
            return 0.0
        return statistics.median_high(entry.domain for entry in self.entries)

    @property
    def mean_priority(self) -> float:
        if not self.entries:
            return 0.0
        return statistics.fmean(entry.priority for entry in self.entries)


# =============================================================================
# Priorities
# =============================================================================


def projected_recall(item: LearningItem, now: datetime) -> float:
    """Retrievability at ``now``; 0 for never-reviewed items."""
    if item.is_new or item.last_reviewed_at is None:
        return 0.0
    return retrievability(item.stability_days, days_between(item.last_reviewed_at, now))


def spaced_priority(item: LearningItem, now: datetime) -> float:
    """1 - R: the more has been forgotten, the sooner it comes up."""
    return 1.0 - projected_recall(item, now)


def exam_priority(item: LearningItem, policy: PolicyConfig, now: datetime) -> float:
    """Spaced priority with hot topics weighted by ``exam_hot_multiplier``."""
    priority = spaced_priority(item, now)
    if item.hot_topic:
        priority *= policy.exam_hot_multiplier
    return priority


def reinforcement_priority(item: LearningItem, policy: PolicyConfig, now: datetime) -> float:
    """
    Score for remedial sessions.

    Components:
        due now              +1000, plus days overdue (at most 100)
        weak domain          +2 per missing domain point
        weak mastery         +1 per missing mastery point
        missed last attempt  +500
        recent error flag    +50 (items with more than 5 attempts)
    """
    score = 0.0

    if item.is_due(now):
        score += 1000 + min(100.0, days_overdue(item, now))

    score += (100 - item_domain(item, now)) * 2
    score += 100 - min(100.0, max(0.0, item.mastery_score))

    if not item.is_new and not item.last_was_correct:
        score += 500
    if item.total_attempts > 5 and item.recent_error:
        score += 50

    return score


def is_critical_candidate(item: LearningItem, policy: PolicyConfig) -> bool:
    """Missed last time, still fragile, or a hot topic."""
    missed = not item.is_new and not item.last_was_correct
    return missed or item.stability_days < policy.critical_stability_days or item.hot_topic


def new_item_cap(session_size: int, new_content_limit: float) -> int:
    """Largest number of never-reviewed items a session may hold."""
    fraction = min(1.0, max(0.0, new_content_limit))
    return math.floor(max(0, session_size) * fraction)


# =============================================================================
# Builders
# =============================================================================


def _group(items: Iterable[LearningItem], subject_of: SubjectKey) -> dict[str, list[LearningItem]]:
    groups: dict[str, list[LearningItem]] = {}
    for item in items:
        groups.setdefault(subject_of(item), []).append(item)
    return groups


def _entry(item: LearningItem, reason: DueReason, priority: float, now: datetime) -> QueueEntry:
    return QueueEntry(item=item, reason=reason, domain=item_domain(item, now), priority=priority)


def _standard(
    items: list[LearningItem],
    policy: PolicyConfig,
    now: datetime,
    session_size: int,
    new_cap: int,
    include_near_due: bool,
    subject_of: SubjectKey,
) -> list[QueueEntry]:
    due = [
        item for item in items
        if not item.is_new
        and (item.is_due(now) or (include_near_due and is_near_due(item, policy, now)))
    ]
    new = [item for item in items if item.is_new]

    due_groups = {
        subject: deque(rank_items(group, policy, now))
        for subject, group in _group(due, subject_of).items()
    }
    new_groups = {subject: deque(group) for subject, group in _group(new, subject_of).items()}
    subjects = sorted(set(due_groups) | set(new_groups))

    entries: list[QueueEntry] = []
    new_taken = 0

    while len(entries) < session_size:
        progressed = False
        for subject in subjects:
            if len(entries) >= session_size:
                break

            due_group = due_groups.get(subject)
            new_group = new_groups.get(subject)

            # Due items first; new ones only while under the cap
            if due_group:
                item = due_group.popleft()
                entries.append(_entry(item, DueReason.DUE, spaced_priority(item, now), now))
                progressed = True
            elif new_group and new_taken < new_cap:
                item = new_group.popleft()
                entries.append(_entry(item, DueReason.NEW, spaced_priority(item, now), now))
                new_taken += 1
                progressed = True

        if not progressed:
            break

    return entries


def _exam(
    items: list[LearningItem],
    policy: PolicyConfig,
    now: datetime,
    session_size: int,
    new_cap: int,
) -> list[QueueEntry]:
    reviewed = sorted(
        (item for item in items if not item.is_new),
        key=lambda item: (-exam_priority(item, policy, now), item.item_id),
    )
    new = [item for item in items if item.is_new]

    new_count = min(len(new), new_cap, session_size)
    reviewed_count = min(len(reviewed), session_size - new_count)

    return [
        _entry(item, DueReason.DUE, exam_priority(item, policy, now), now)
        for item in reviewed[:reviewed_count]
    ] + [
        _entry(item, DueReason.NEW, exam_priority(item, policy, now), now)
        for item in new[:new_count]
    ]


def _critical(
    items: list[LearningItem],
    policy: PolicyConfig,
    now: datetime,
    session_size: int,
) -> list[QueueEntry]:
    scored = [
        (reinforcement_priority(item, policy, now), item)
        for item in items
        if is_critical_candidate(item, policy)
    ]
    scored.sort(key=lambda pair: (-pair[0], pair[1].item_id))

    return [
        _entry(item, DueReason.CRITICAL, score, now)
        for score, item in scored[:session_size]
    ]


def build_session_queue(
    items: Iterable[LearningItem],
    policy: PolicyConfig,
    now: datetime,
    session_size: int = 20,
    new_content_limit: float = 0.1,
    mode: QueueMode = QueueMode.STANDARD,
    include_near_due: bool = False,
    subject_of: SubjectKey | None = None,
) -> SessionQueue:
    """
    Build one study session.

    Args:
        items: Whole collection (read only)
        policy: Scheduling policy snapshot
        now: Session start
        session_size: Maximum number of entries
        new_content_limit: Fraction of ``session_size`` open to never-reviewed items
        mode: standard, exam or critical
        include_near_due: Standard mode also takes near-due items
        subject_of: Grouping key for interleaving; everything shares one
            subject when omitted

    Returns:
        SessionQueue with at most ``session_size`` entries
    """
    pool = list(items)
    mode = QueueMode(mode)
    session_size = max(0, session_size)
    new_cap = new_item_cap(session_size, new_content_limit)

    if mode == QueueMode.EXAM:
        entries = _exam(pool, policy, now, session_size, new_cap)
    elif mode == QueueMode.CRITICAL:
        entries = _critical(pool, policy, now, session_size)
    else:
        entries = _standard(
            pool,
            policy,
            now,
            session_size,
            new_cap,
            include_near_due,
            subject_of or (lambda item: DEFAULT_SUBJECT),
        )

    mix = QueueMix(
        due=sum(1 for e in entries if e.reason == DueReason.DUE),
        new=sum(1 for e in entries if e.reason == DueReason.NEW),
        critical=sum(1 for e in entries if e.reason == DueReason.CRITICAL),
    )

    logger.debug(
        f"Session ({mode.value}): {mix.total}/{session_size} entries, "
        f"{mix.due} due, {mix.new} new, {mix.critical} critical from {len(pool)} items"
    )

    return SessionQueue(mode=mode, entries=tuple(entries), mix=mix)
