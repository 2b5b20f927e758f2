"""Continuation control module for anima.

Bounds how many automatic follow-up turns the backend may trigger.
"""

from .controller import ContinuationController
from .dots import WaitingDots
from .models import ContinuationState

__all__ = [
    "ContinuationController",
    "ContinuationState",
    "WaitingDots",
]
