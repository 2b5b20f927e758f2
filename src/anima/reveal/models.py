"""Data structures for the reveal scheduler.

Hides the internal representation of an in-flight reveal. Only the scheduler
mutates a TypingSession; everyone else sees RevealProgress snapshots.
"""

import math
from dataclasses import dataclass


def reveal_duration_ms(text: str, speed_ms_per_char: float) -> float:
    """Total wall-clock time needed to reveal ``text`` at the given speed."""
    return len(text) * speed_ms_per_char


@dataclass
class TypingSession:
    """One answer being disclosed character by character."""

    full_text: str
    speed_ms_per_char: float
    started_at: float  # clock milliseconds
    revealed_length: int = 0

    @property
    def total_length(self) -> int:
        return len(self.full_text)

    @property
    def expected_duration_ms(self) -> float:
        return reveal_duration_ms(self.full_text, self.speed_ms_per_char)

    @property
    def finished(self) -> bool:
        return self.revealed_length >= self.total_length

    def target_index(self, now: float) -> int:
        """Characters that should be visible at clock time ``now``.

        Derived from elapsed time rather than a per-tick counter, so a late or
        dropped tick jumps straight to the correct position.
        """
        elapsed = now - self.started_at
        if elapsed <= 0:
            return 0
        return min(math.floor(elapsed / self.speed_ms_per_char), self.total_length)


@dataclass(frozen=True)
class RevealProgress:
    """Read-only publication of reveal progress."""

    full_text: str
    revealed_length: int

    @property
    def text(self) -> str:
        """Currently visible prefix."""
        return self.full_text[:self.revealed_length]

    @property
    def done(self) -> bool:
        return self.revealed_length >= len(self.full_text)
