"""
Core Module - Shared review models and the forgetting curve.

Components:
- models: LearningItem, AttemptRecord and the review enums
- policy: Immutable PolicyConfig threaded through every engine call
- retention_model: Exponential retrievability and day arithmetic
- clock: Injected time source

Design Principle:
Everything in retention/study/ builds on these types; nothing here reads global
state or performs I/O.
"""

from retention.core.clock import Clock, FixedClock, SystemClock
from retention.core.models import (
    AttemptRecord,
    ItemKind,
    LearningItem,
    LevelInfo,
    SelfEval,
    TimingClass,
    Urgency,
)
from retention.core.policy import DEFAULT_POLICY, PolicyConfig, PriorityWeights
from retention.core.retention_model import (
    days_between,
    retrievability,
    time_to_retrievability,
)

__all__ = [
    # Models
    "AttemptRecord",
    "ItemKind",
    "LearningItem",
    "LevelInfo",
    "SelfEval",
    "TimingClass",
    "Urgency",
    # Policy
    "DEFAULT_POLICY",
    "PolicyConfig",
    "PriorityWeights",
    # Retention model
    "days_between",
    "retrievability",
    "time_to_retrievability",
    # Clock
    "Clock",
    "FixedClock",
    "SystemClock",
]
