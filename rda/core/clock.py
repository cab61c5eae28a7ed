"""
Clocks - sources of the current unix time in whole seconds.

The auction never reads the wall clock on its own; it is handed a clock
(or an explicit `now`) so tests and simulations stay deterministic.
"""

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Anything that can report the current time in seconds."""

    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock time, truncated to whole seconds."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Clock that only moves when told to.

    Mirrors the `time.increase(...)` helper used when exercising
    auctions against a local chain.
    """

    def __init__(self, start: int = 0):
        if start < 0:
            raise ValueError(f"start must be non-negative, got {start}")
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        """Move forward by `seconds` and return the new time."""
        if seconds < 0:
            raise ValueError("Clock cannot move backwards")
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        """Jump to an absolute time (never backwards)."""
        if timestamp < self._now:
            raise ValueError(f"Clock cannot move backwards: {timestamp} < {self._now}")
        self._now = timestamp

    def __repr__(self) -> str:
        return f"ManualClock(now={self._now})"
