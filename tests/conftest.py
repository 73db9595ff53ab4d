"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import math
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from retention.core.models import LearningItem  # noqa: E402
from retention.core.policy import PolicyConfig  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "properties: Property-based tests (hypothesis)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "properties" in str(item.fspath):
            item.add_marker(pytest.mark.properties)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def now():
    """A fixed Monday morning, timezone-aware."""
    return datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@pytest.fixture
def policy():
    """Production defaults."""
    return PolicyConfig()


@pytest.fixture
def linear_policy():
    """
    Policy whose target retrievability is e^-1.

    With this target the raw interval t* equals the stability exactly, which
    keeps scheduling arithmetic readable in tests.
    """
    return PolicyConfig(target_r=math.exp(-1))


@pytest.fixture
def new_item(policy, now):
    """A never-reviewed question, due now."""
    return LearningItem.new("q-001", policy, now)


@pytest.fixture
def make_reviewed_item(now):
    """Factory for an item last reviewed ``days_ago`` and due ``due_in`` days from now."""

    def _make(
        item_id: str = "q-100",
        stability_days: float = 4.0,
        mastery_score: float = 60.0,
        days_ago: float = 2.0,
        due_in: float = 2.0,
        **kwargs,
    ) -> LearningItem:
        return LearningItem(
            item_id=item_id,
            stability_days=stability_days,
            mastery_score=mastery_score,
            last_reviewed_at=now - timedelta(days=days_ago),
            next_review_date=now + timedelta(days=due_in),
            total_attempts=kwargs.pop("total_attempts", 1),
            last_was_correct=kwargs.pop("last_was_correct", True),
            **kwargs,
        )

    return _make
