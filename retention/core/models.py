"""
Review Domain Models.

Immutable snapshots of a learning item and its attempt log. Questions and
flashcards share this shape; kind-specific content (options, card faces)
stays with the caller and never reaches the engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum, IntEnum

from retention.core.policy import PolicyConfig
from retention.core.retention_model import as_utc


class ItemKind(str, Enum):
    """Kind of learning item."""

    QUESTION = "question"
    FLASHCARD = "flashcard"


class SelfEval(IntEnum):
    """Learner's own rating of recall difficulty."""

    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3

    @classmethod
    def coerce(cls, level: int) -> SelfEval:
        """Map any number to a rating; out-of-range or non-finite values become HARD."""
        try:
            return cls(int(level))
        except (TypeError, ValueError, OverflowError):
            return cls.HARD

    @property
    def grade(self) -> str:
        """Lowercase label stored on attempt records."""
        return self.name.lower()


class TimingClass(str, Enum):
    """Bucketed response time relative to a target duration."""

    FAST = "fast"
    NORMAL = "normal"
    SLOW = "slow"


class Urgency(str, Enum):
    """
    Read-time urgency label for due-queues and badges.

    Labels keep the study app's wording: CRITICO (critical), ATENCAO
    (attention), OK.
    """

    CRITICO = "CRITICO"
    ATENCAO = "ATENCAO"
    OK = "OK"

    @property
    def rank(self) -> int:
        """Sort rank: lower surfaces first."""
        return {Urgency.CRITICO: 0, Urgency.ATENCAO: 1, Urgency.OK: 2}[self]

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {Urgency.CRITICO: "red", Urgency.ATENCAO: "yellow", Urgency.OK: "green"}[self]


@dataclass(frozen=True)
class AttemptRecord:
    """A single completed attempt. Never modified once created."""

    date: datetime
    was_correct: bool
    mastery_after: float
    stability_after: float
    time_sec: float
    self_eval_level: SelfEval
    timing_class: TimingClass
    target_sec: float
    interval_days: float = 0.0

    @property
    def grade(self) -> str:
        return self.self_eval_level.grade


@dataclass(frozen=True)
class LearningItem:
    """
    Review state of a question or flashcard.

    Only the engine produces new values for ``stability_days``,
    ``mastery_score`` and ``next_review_date``; everything else is set by
    the surrounding application.
    """

    item_id: str
    next_review_date: datetime
    stability_days: float
    kind: ItemKind = ItemKind.QUESTION
    mastery_score: float = 0.0
    last_reviewed_at: datetime | None = None
    total_attempts: int = 0
    correct_streak: int = 0
    last_was_correct: bool = False
    last_attempt_date: date | None = None

    # External priority signals
    recent_error: bool = False
    hot_topic: bool = False
    is_critical: bool = False
    is_fundamental: bool = False

    # Item-specific response-time target (seconds)
    target_sec: float | None = None

    attempt_history: tuple[AttemptRecord, ...] = field(default_factory=tuple)

    @classmethod
    def new(
        cls,
        item_id: str,
        policy: PolicyConfig,
        now: datetime,
        kind: ItemKind = ItemKind.QUESTION,
        **flags,
    ) -> LearningItem:
        """
        Create a never-reviewed item, due immediately.

        Args:
            item_id: Caller-owned identifier
            policy: Supplies the default stability
            now: Creation time, which is also the first due time
            kind: Question or flashcard
            **flags: hot_topic / is_critical / is_fundamental / recent_error / target_sec

        Returns:
            LearningItem with default review state
        """
        return cls(
            item_id=item_id,
            kind=kind,
            stability_days=policy.S_default_days,
            next_review_date=as_utc(now),
            **flags,
        )

    @property
    def is_new(self) -> bool:
        """True until the first attempt is recorded."""
        return self.total_attempts == 0

    def is_due(self, now: datetime) -> bool:
        return as_utc(self.next_review_date) <= as_utc(now)

    def with_flags(self, **flags) -> LearningItem:
        """Copy with external priority signals changed."""
        allowed = {"recent_error", "hot_topic", "is_critical", "is_fundamental", "target_sec"}
        unknown = set(flags) - allowed
        if unknown:
            raise ValueError(f"Not an external flag: {', '.join(sorted(unknown))}")
        return replace(self, **flags)


@dataclass(frozen=True)
class LevelInfo:
    """Learner level derived from cumulative XP."""

    level: int
    progress_percent: float
    xp: int = 0
    level_floor_xp: int = 0
    next_level_xp: int = 100

    @property
    def xp_to_next_level(self) -> int:
        return max(0, self.next_level_xp - self.xp)
