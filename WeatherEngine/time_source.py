"""Clock abstraction - lets the engine run against real or scripted time."""
import time
from abc import ABC, abstractmethod


class TimeSource(ABC):
    """Abstract clock returning wall-clock milliseconds."""

    @abstractmethod
    def now(self) -> int:
        """Return the current time in milliseconds since the epoch."""
        pass


class SystemTimeSource(TimeSource):
    """Clock backed by the system wall clock."""

    def now(self) -> int:
        return int(time.time() * 1000)


class FakeTimeSource(TimeSource):
    """
    Clock that only moves when told to.

    Used in tests and offline demos to make cache freshness deterministic.
    """

    def __init__(self, start_millis: int = 0):
        self._now = start_millis

    def now(self) -> int:
        return self._now

    def set(self, millis: int) -> None:
        self._now = millis

    def advance(self, millis: int) -> int:
        self._now += millis
        return self._now
