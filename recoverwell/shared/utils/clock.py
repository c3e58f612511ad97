"""Clock/context provider.

Detectors never read the wall clock directly; a Clock is injected so
temporal risk checks are deterministic under test.
"""
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional

# datetime.weekday(): Monday == 0 ... Sunday == 6
SATURDAY = 5
SUNDAY = 6


class Clock(ABC):
    """Supplies the current time and derived temporal features."""

    @abstractmethod
    def now(self) -> datetime:
        pass

    def hour(self) -> int:
        return self.now().hour

    def day_of_week(self) -> int:
        return self.now().weekday()

    def is_weekend(self) -> bool:
        return self.day_of_week() in (SATURDAY, SUNDAY)


class SystemClock(Clock):
    """Wall clock in the user's timezone (local time when tz is None)."""

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)


class FixedClock(Clock):
    """Clock pinned to a given instant. Used by tests and replays."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def advance(self, delta: timedelta) -> None:
        self._instant = self._instant + delta


def hour_distance(a: int, b: int) -> int:
    """Circular distance between two hours of the day (23 and 0 are 1 apart)."""
    diff = abs(a - b) % 24
    return min(diff, 24 - diff)
