"""
Injectable clock so lifecycle managers never read the wall clock directly.

Timestamps are UTC. Rows read back from stores that drop tzinfo (SQLite) are
normalized with ``ensure_utc`` before any arithmetic.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes, convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Clock(ABC):
    """Abstract clock interface."""

    @abstractmethod
    def now(self) -> datetime:
        """Get the current UTC time."""
        ...


class SystemClock(Clock):
    """Production clock that returns actual system time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Test clock with controlled time."""

    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._current = ensure_utc(fixed_time) or datetime(
            2024, 1, 1, 8, 0, tzinfo=timezone.utc
        )

    def now(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> datetime:
        """Move the clock forward and return the new time."""
        self._current = self._current + timedelta(seconds=seconds)
        return self._current

    def set(self, new_time: datetime) -> None:
        self._current = ensure_utc(new_time)
