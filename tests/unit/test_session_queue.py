"""
Unit tests for the session queue builder.

Tests the size cap, the new-content limit, subject interleaving and the
exam and critical modes, plus the mix and domain figures.
"""

import pytest

from retention.core.clock import FixedClock
from retention.core.models import LearningItem
from retention.study.engine import RetentionEngine
from retention.study.session_queue import (
    DueReason,
    QueueMode,
    build_session_queue,
    new_item_cap,
    reinforcement_priority,
)


def subject_prefix(item):
    return item.item_id.split("-")[0]


@pytest.fixture
def due_items(make_reviewed_item):
    def _make(count, prefix="q"):
        return [
            make_reviewed_item(item_id=f"{prefix}-{n:02d}", days_ago=4.0, due_in=-0.5)
            for n in range(count)
        ]

    return _make


@pytest.fixture
def new_items(policy, now):
    def _make(count, prefix="n"):
        return [LearningItem.new(f"{prefix}-{n:02d}", policy, now) for n in range(count)]

    return _make


class TestStandardMode:
    """Tests for the default session."""

    def test_size_cap(self, due_items, policy, now):
        session = build_session_queue(due_items(30), policy, now, session_size=10)

        assert len(session) == 10
        assert session.mix.due == 10
        assert all(e.reason == DueReason.DUE for e in session.entries)

    def test_new_fraction(self, due_items, new_items, policy, now):
        """5 due, 20 new, size 10 at 20%: all due items and 2 new ones."""
        items = due_items(5) + new_items(20)

        session = build_session_queue(items, policy, now, session_size=10, new_content_limit=0.2)

        assert len(session) == 7
        assert (session.mix.due, session.mix.new) == (5, 2)
        assert session.mix.pct_new == pytest.approx(2 / 7 * 100)
        assert [e.reason for e in session.entries[-2:]] == [DueReason.NEW, DueReason.NEW]

    def test_new_items_keep_insertion_order(self, new_items, policy, now):
        session = build_session_queue(new_items(20), policy, now, session_size=20, new_content_limit=0.1)

        assert [i.item_id for i in session.items] == ["n-00", "n-01"]

    def test_no_new_items_at_zero_limit(self, new_items, policy, now):
        session = build_session_queue(new_items(5), policy, now, new_content_limit=0.0)
        assert len(session) == 0

    def test_subjects_interleaved(self, make_reviewed_item, policy, now):
        items = [
            make_reviewed_item(item_id=item_id, days_ago=4.0, due_in=-0.5)
            for item_id in ["law-1", "law-2", "math-1", "math-2"]
        ]

        session = build_session_queue(items, policy, now, subject_of=subject_prefix)

        assert [subject_prefix(i) for i in session.items] == ["law", "math", "law", "math"]

    def test_near_due_only_when_asked(self, make_reviewed_item, policy, now):
        """S=4 reviewed 2 days ago: recall ~0.61, below r_near but not yet due."""
        near = make_reviewed_item(item_id="q-near", stability_days=4.0, days_ago=2.0, due_in=2.0)

        assert len(build_session_queue([near], policy, now)) == 0
        assert build_session_queue([near], policy, now, include_near_due=True).items == [near]

    def test_not_due_items_left_out(self, make_reviewed_item, policy, now):
        fresh = make_reviewed_item(stability_days=30.0, days_ago=0.5, due_in=20.0)
        assert build_session_queue([fresh], policy, now).entries == ()

    def test_negative_size_gives_empty_session(self, due_items, policy, now):
        assert len(build_session_queue(due_items(3), policy, now, session_size=-5)) == 0


class TestExamMode:
    """Tests for exam sessions."""

    def test_hot_topics_first_then_new(self, make_reviewed_item, new_items, policy, now):
        plain = make_reviewed_item(item_id="q-plain", stability_days=4.0, days_ago=2.0)
        hot = make_reviewed_item(item_id="q-hot", stability_days=4.0, days_ago=2.0, hot_topic=True)
        items = [plain, hot] + new_items(3)

        session = build_session_queue(
            items, policy, now, session_size=4, new_content_limit=0.5, mode=QueueMode.EXAM
        )

        assert [i.item_id for i in session.items] == ["q-hot", "q-plain", "n-00", "n-01"]
        assert session.entries[0].priority == pytest.approx(session.entries[1].priority * 1.5)
        assert (session.mix.due, session.mix.new) == (2, 2)

    def test_mode_accepts_string(self, due_items, policy, now):
        session = build_session_queue(due_items(2), policy, now, mode="exam")
        assert session.mode == QueueMode.EXAM


class TestCriticalMode:
    """Tests for remedial sessions."""

    def test_candidates_by_reinforcement_priority(self, make_reviewed_item, policy, now):
        steady = make_reviewed_item(item_id="q-steady", stability_days=50.0)
        hot = make_reviewed_item(item_id="q-hot", stability_days=50.0, hot_topic=True)
        low = make_reviewed_item(item_id="q-low", stability_days=4.0)
        missed = make_reviewed_item(item_id="q-missed", stability_days=20.0, last_was_correct=False)

        session = build_session_queue([steady, hot, low, missed], policy, now, mode=QueueMode.CRITICAL)

        assert [i.item_id for i in session.items] == ["q-missed", "q-low", "q-hot"]
        assert session.mix.critical == 3
        priorities = [e.priority for e in session.entries]
        assert priorities == sorted(priorities, reverse=True)

    def test_size_cap(self, make_reviewed_item, policy, now):
        items = [make_reviewed_item(item_id=f"q-{n}", stability_days=2.0) for n in range(8)]

        session = build_session_queue(items, policy, now, session_size=3, mode=QueueMode.CRITICAL)

        assert len(session) == 3


class TestReinforcementPriority:
    def test_due_item_at_full_mastery(self, make_reviewed_item, policy, now):
        item = make_reviewed_item(stability_days=365.0, mastery_score=100.0, days_ago=0.0, due_in=0.0)
        assert reinforcement_priority(item, policy, now) == pytest.approx(1000.0)

    def test_overdue_bonus_capped(self, make_reviewed_item, policy, now):
        item = make_reviewed_item(stability_days=365.0, mastery_score=100.0, days_ago=0.0, due_in=-150.0)
        assert reinforcement_priority(item, policy, now) == pytest.approx(1100.0)

    def test_recent_error_needs_history(self, make_reviewed_item, policy, now):
        base = dict(stability_days=365.0, mastery_score=100.0, days_ago=0.0, due_in=5.0, recent_error=True)

        early = make_reviewed_item(total_attempts=3, **base)
        seasoned = make_reviewed_item(total_attempts=6, **base)

        assert reinforcement_priority(early, policy, now) == pytest.approx(0.0)
        assert reinforcement_priority(seasoned, policy, now) == pytest.approx(50.0)


class TestSessionFigures:
    def test_domain_mean_and_median(self, make_reviewed_item, policy, now):
        items = [
            make_reviewed_item(item_id=f"q-{n}", mastery_score=score, days_ago=0.0, due_in=-0.1)
            for n, score in enumerate([10.0, 20.0, 60.0])
        ]

        session = build_session_queue(items, policy, now)

        assert session.mean_domain == pytest.approx(30.0)
        assert session.median_domain == pytest.approx(20.0)

    def test_empty_session(self, policy, now):
        session = build_session_queue([], policy, now)

        assert session.mix.total == 0
        assert session.mix.pct_new == 0.0
        assert (session.mean_domain, session.median_domain, session.mean_priority) == (0.0, 0.0, 0.0)

    @pytest.mark.parametrize(
        "size, limit, expected",
        [(20, 0.1, 2), (10, 0.25, 2), (10, 1.5, 10), (10, -0.2, 0), (-3, 0.5, 0)],
    )
    def test_new_item_cap(self, size, limit, expected):
        assert new_item_cap(size, limit) == expected


class TestEngineFacade:
    def test_uses_engine_clock(self, policy, now, due_items):
        engine = RetentionEngine(policy, FixedClock(now))

        session = engine.build_session_queue(due_items(4), session_size=2)

        assert len(session) == 2
