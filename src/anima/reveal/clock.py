"""Millisecond clocks for the reveal scheduler."""

import time


def monotonic_ms() -> float:
    """Monotonic wall-clock time in milliseconds."""
    return time.monotonic() * 1000.0


class ManualClock:
    """Clock that only moves when told to.

    Usable anywhere a ``Callable[[], float]`` clock is accepted. Lets tests
    and simulations model jittered frames or a backgrounded app exactly.
    """

    def __init__(self, start_ms: float = 0.0):
        self._now = start_ms

    def __call__(self) -> float:
        return self._now

    @property
    def now(self) -> float:
        return self._now

    def advance(self, ms: float) -> float:
        """Move time forward and return the new reading."""
        if ms < 0:
            raise ValueError("ManualClock cannot move backwards")
        self._now += ms
        return self._now
