"""
Study Module - scheduling and mastery estimation.

Provides:
- Response-time classification
- Stability updates (reinforcement rule)
- Mastery score and current-domain projection
- Next-review scheduling with exam compression
- Urgency, priority and due-queue ranking
- Level/XP progression
- Review badges and collection statistics
- Bounded study sessions (standard, exam and critical modes)
"""

from retention.study.engine import (
    RetentionEngine,
    UpdatedItem,
    classify_urgency,
    level_info,
    project_domain,
    rank_due_queue,
    record_attempt,
)
from retention.study.review_status import (
    MasteryTier,
    ReviewStatus,
    compute_aggregated_stats,
    summarize_history,
)
from retention.study.session_queue import (
    QueueMode,
    SessionQueue,
    build_session_queue,
    reinforcement_priority,
)

__all__ = [
    "RetentionEngine",
    "UpdatedItem",
    "record_attempt",
    "project_domain",
    "classify_urgency",
    "rank_due_queue",
    "level_info",
    "MasteryTier",
    "ReviewStatus",
    "compute_aggregated_stats",
    "summarize_history",
    "QueueMode",
    "SessionQueue",
    "build_session_queue",
    "reinforcement_priority",
]
