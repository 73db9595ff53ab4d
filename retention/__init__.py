"""
retention-core: spaced-repetition scheduling and mastery estimation.

Typical session use:

    engine = RetentionEngine(policy)
    result = engine.record_attempt(item, was_correct=True, self_eval_level=2, time_sec=40)
    repository.update(result.item)
"""

from retention.core import (
    AttemptRecord,
    ItemKind,
    LearningItem,
    LevelInfo,
    PolicyConfig,
    PriorityWeights,
    SelfEval,
    TimingClass,
    Urgency,
)
from retention.study import (
    RetentionEngine,
    UpdatedItem,
    classify_urgency,
    level_info,
    project_domain,
    rank_due_queue,
    record_attempt,
)

__version__ = "1.0.0"

__all__ = [
    "AttemptRecord",
    "ItemKind",
    "LearningItem",
    "LevelInfo",
    "PolicyConfig",
    "PriorityWeights",
    "SelfEval",
    "TimingClass",
    "Urgency",
    "RetentionEngine",
    "UpdatedItem",
    "record_attempt",
    "project_domain",
    "classify_urgency",
    "rank_due_queue",
    "level_info",
]
