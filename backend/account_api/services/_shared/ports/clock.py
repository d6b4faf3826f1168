from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Protocol

from account_api.models.base import to_utc


class Clock(Protocol):
    """Port for reading the current instant (always aware UTC)."""

    def now(self) -> datetime: ...


class SystemClock(Clock):
    """Wall clock of the running process."""

    def now(self) -> datetime:
        return datetime.now(tz=UTC)


class FrozenClock(Clock):
    """
    Manually driven clock for tests.

    :param at: Initial instant; naive values are taken as UTC.
    :type at: datetime
    """

    def __init__(self, at: datetime) -> None:
        self._now = to_utc(at)

    def now(self) -> datetime:
        return self._now

    def advance(self, delta: timedelta) -> datetime:
        """Move the clock forward by ``delta`` and return the new instant."""
        self._now = self._now + delta
        return self._now

    def set(self, at: datetime) -> None:
        self._now = to_utc(at)
