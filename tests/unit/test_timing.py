"""Unit tests for the response-time classifier."""

import pytest

from retention.core.models import TimingClass
from retention.study.timing import classify_response_time, resolve_target_sec


class TestResolveTarget:
    """Tests for target selection."""

    def test_item_target_wins(self, policy):
        assert resolve_target_sec(45, policy) == 45.0

    @pytest.mark.parametrize("target", [None, 0, -10])
    def test_unusable_target_uses_policy(self, policy, target):
        """Missing or non-positive targets fall back to the global target."""
        assert resolve_target_sec(target, policy) == policy.time_target_sec


class TestClassifyResponseTime:
    """Tests for fast / normal / slow bucketing (default target 120s)."""

    @pytest.mark.parametrize(
        "time_sec, expected",
        [
            (0, TimingClass.FAST),
            (60, TimingClass.FAST),  # boundary: target * rt_fast
            (61, TimingClass.NORMAL),
            (179.9, TimingClass.NORMAL),
            (180, TimingClass.SLOW),  # boundary: target * rt_slow
            (900, TimingClass.SLOW),
        ],
    )
    def test_default_target(self, policy, time_sec, expected):
        assert classify_response_time(time_sec, None, policy) == expected

    def test_item_specific_target(self, policy):
        """A 20s item makes 10s fast and 30s slow."""
        assert classify_response_time(10, 20, policy) == TimingClass.FAST
        assert classify_response_time(15, 20, policy) == TimingClass.NORMAL
        assert classify_response_time(30, 20, policy) == TimingClass.SLOW

    def test_negative_time_is_fast(self, policy):
        """Negative durations clamp to zero."""
        assert classify_response_time(-5, None, policy) == TimingClass.FAST
