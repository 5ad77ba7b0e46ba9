"""Clock abstraction for timing decisions.

Every component that debounces, throttles or times out reads time from a
callable returning monotonic seconds. Live use passes ``time.monotonic``;
tests and offline file replay pass a ``ManualClock`` advanced explicitly.
"""

import time
from typing import Callable

Clock = Callable[[], float]


def monotonic_clock() -> float:
    """Default clock: monotonic seconds."""
    return time.monotonic()


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValueError(f"Cannot move clock backwards: {seconds}")
        self._now += seconds
        return self._now

    def set(self, now: float) -> None:
        """Jump to an absolute time (must not go backwards)."""
        if now < self._now:
            raise ValueError(f"Cannot move clock backwards: {now} < {self._now}")
        self._now = float(now)
