"""Reveal scheduler module for anima.

Discloses an answer character by character on a clock-derived schedule.
"""

from .clock import ManualClock, monotonic_ms
from .models import RevealProgress, TypingSession, reveal_duration_ms
from .scheduler import RevealScheduler

__all__ = [
    "ManualClock",
    "RevealProgress",
    "RevealScheduler",
    "TypingSession",
    "monotonic_ms",
    "reveal_duration_ms",
]
