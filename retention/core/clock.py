"""Injected wall clock."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol

from retention.core.retention_model import as_utc


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Real time, always timezone-aware UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Frozen time for tests and replays; ``advance`` moves it forward."""

    def __init__(self, moment: datetime):
        self._moment = as_utc(moment)

    def now(self) -> datetime:
        return self._moment

    def advance(self, days: float = 0, **kwargs) -> datetime:
        self._moment = self._moment + timedelta(days=days, **kwargs)
        return self._moment
