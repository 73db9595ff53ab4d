"""
Unit tests for the retention engine.

Covers the single write path (record_attempt) end to end, plus the
clock-bound RetentionEngine facade.
"""

from datetime import timedelta

import pytest

from retention.core.clock import FixedClock
from retention.core.models import SelfEval, TimingClass, Urgency
from retention.study.engine import RetentionEngine, record_attempt


class TestRecordAttempt:
    """Tests for a single attempt."""

    def test_first_attempt_on_new_item(self, new_item, policy, now):
        """History, counters and review dates are set on the first attempt."""
        result = record_attempt(new_item, True, SelfEval.GOOD, 30, policy, now)
        item = result.item

        assert item.total_attempts == 1
        assert len(item.attempt_history) == item.total_attempts
        assert item.last_reviewed_at == now
        assert item.last_attempt_date == now.date()
        assert item.last_was_correct is True
        assert item.correct_streak == 1
        assert item.mastery_score == pytest.approx(15.0)
        assert item.stability_days == pytest.approx(1.28)  # good + fast bonus
        assert item.next_review_date == now + timedelta(days=1)

    def test_input_snapshot_untouched(self, new_item, policy, now):
        record_attempt(new_item, True, SelfEval.EASY, 10, policy, now)

        assert new_item.total_attempts == 0
        assert new_item.attempt_history == ()
        assert new_item.last_reviewed_at is None

    def test_attempt_record(self, new_item, policy, now):
        result = record_attempt(new_item, False, SelfEval.HARD, 200, policy, now)
        attempt = result.attempt

        assert result.item.attempt_history[-1] is attempt
        assert attempt.date == now
        assert attempt.was_correct is False
        assert attempt.self_eval_level == SelfEval.HARD
        assert attempt.grade == "hard"
        assert attempt.timing_class == TimingClass.SLOW
        assert attempt.target_sec == policy.time_target_sec
        assert attempt.mastery_after == result.mastery_score
        assert attempt.stability_after == result.stability_days
        assert attempt.interval_days == result.interval_days

    def test_easy_fast_recall_grows_stability(self, make_reviewed_item, linear_policy, now):
        """S=4, easy and fast: S' = 4 * 1.36 and the interval follows S'."""
        item = make_reviewed_item(stability_days=4.0, days_ago=4.0, due_in=0.0)

        result = record_attempt(item, True, SelfEval.EASY, 10, linear_policy, now)

        assert result.timing_class == TimingClass.FAST
        assert result.long_gap is False
        assert result.stability_days == pytest.approx(5.44)
        assert result.stability_days > 4.0 * 1.30
        assert result.interval_days == pytest.approx(5.44)
        delta = result.next_review_date - now
        assert delta.total_seconds() == pytest.approx(5.44 * 86400, abs=1)

    def test_wrong_answer_halves_and_reschedules_tomorrow(self, make_reviewed_item, policy, now):
        item = make_reviewed_item(stability_days=10.0, mastery_score=60.0, days_ago=10.0, due_in=0.0)

        result = record_attempt(item, False, SelfEval.GOOD, 60, policy, now)

        assert result.stability_days == pytest.approx(5.0)
        assert result.mastery_score == pytest.approx(48.0)
        assert result.next_review_date == now + timedelta(days=1)
        assert result.item.correct_streak == 0
        assert result.item.last_was_correct is False

    def test_again_rating_counts_as_failure(self, make_reviewed_item, policy, now):
        """Right answer rated 'again' resets like a miss but records was_correct."""
        item = make_reviewed_item(stability_days=10.0, mastery_score=60.0, correct_streak=3)

        result = record_attempt(item, True, SelfEval.AGAIN, 60, policy, now)

        assert result.stability_days == pytest.approx(5.0)
        assert result.mastery_score == pytest.approx(48.0)
        assert result.item.correct_streak == 0
        assert result.attempt.was_correct is True

    def test_long_gap_bonus(self, make_reviewed_item, policy, now):
        """Planned 4 days, answered after 10: good + long gap gives 4 * 1.32."""
        item = make_reviewed_item(stability_days=4.0, days_ago=10.0, due_in=-6.0)

        result = record_attempt(item, True, SelfEval.GOOD, 100, policy, now)

        assert result.long_gap is True
        assert result.stability_days == pytest.approx(5.28)

    def test_hot_topic_interval_capped(self, make_reviewed_item, linear_policy, now):
        item = make_reviewed_item(stability_days=10.0, days_ago=10.0, due_in=0.0, hot_topic=True)

        result = record_attempt(item, True, SelfEval.GOOD, 100, linear_policy, now)

        assert result.stability_days == pytest.approx(12.2)
        assert result.interval_days == linear_policy.max_hot_days

    def test_out_of_range_rating_recorded_as_hard(self, new_item, policy, now):
        result = record_attempt(new_item, True, 9, 100, policy, now)
        assert result.attempt.self_eval_level == SelfEval.HARD

    @pytest.mark.parametrize("level", [float("inf"), float("nan")])
    def test_non_finite_rating_recorded_as_hard(self, new_item, policy, now, level):
        result = record_attempt(new_item, True, level, 30, policy, now)

        assert result.attempt.self_eval_level == SelfEval.HARD
        assert result.item.total_attempts == 1

    def test_item_target_sec_used(self, policy, now):
        item = RetentionEngine(policy).new_item("fc-1", now=now, target_sec=20)

        result = record_attempt(item, True, SelfEval.GOOD, 30, policy, now)

        assert result.timing_class == TimingClass.SLOW
        assert result.attempt.target_sec == 20.0

    def test_naive_now_stored_as_utc(self, new_item, policy, now):
        result = record_attempt(new_item, True, SelfEval.GOOD, 30, policy, now.replace(tzinfo=None))
        assert result.attempt.date == now


class TestRetentionEngine:
    """Tests for the clock-bound facade."""

    @pytest.fixture
    def clock(self, now):
        return FixedClock(now)

    @pytest.fixture
    def engine(self, policy, clock):
        return RetentionEngine(policy, clock)

    def test_new_item_due_now(self, engine, now):
        item = engine.new_item("q-1")

        assert item.next_review_date == now
        assert item.stability_days == engine.policy.S_default_days
        assert engine.classify_urgency(item) == Urgency.CRITICO
        assert engine.rank_due_queue([item]) == [item]

    def test_domain_decays_with_clock(self, engine, clock):
        item = engine.record_attempt(engine.new_item("q-1"), True, SelfEval.GOOD, 30).item

        fresh = engine.project_domain(item)
        clock.advance(days=3)
        later = engine.project_domain(item)

        assert fresh == pytest.approx(item.mastery_score)
        assert later < fresh

    def test_easy_streak_keeps_growing(self, engine, clock):
        """Reviewing every item on time with 'easy' never shrinks stability."""
        item = engine.new_item("q-1")
        stabilities = []

        for _ in range(8):
            result = engine.record_attempt(item, True, SelfEval.EASY, 30)
            item = result.item
            stabilities.append(item.stability_days)
            clock.advance(days=result.interval_days)

        assert all(a < b for a, b in zip(stabilities, stabilities[1:]))
        assert item.total_attempts == len(item.attempt_history) == 8
        assert item.correct_streak == 8

    def test_priority(self, engine):
        item = engine.new_item("q-1", hot_topic=True)
        assert engine.priority(item) > engine.priority(engine.new_item("q-2"))

    def test_level_info(self):
        info = RetentionEngine.level_info(0)
        assert (info.level, info.progress_percent) == (1, 0.0)
