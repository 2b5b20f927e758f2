"""Continuation controller.

Decides whether a finished assistant answer should trigger another automatic
turn. The cap is enforced here; the session manager owns when to reset it.
"""

import logging

from ..errors import ContinuationLimitError
from .dots import WaitingDots
from .models import ContinuationState

logger = logging.getLogger(__name__)


class ContinuationController:
    """Bounded auto-continuation policy with a waiting sub-phase."""

    def __init__(self, max_attempts: int = 5, dots: WaitingDots | None = None):
        self._state = ContinuationState(max_attempts=max_attempts)
        self._dots = dots or WaitingDots()

    @property
    def attempt_count(self) -> int:
        return self._state.attempt_count

    @property
    def max_attempts(self) -> int:
        return self._state.max_attempts

    @property
    def state(self) -> ContinuationState:
        """Copy of the current state."""
        return self._state.model_copy()

    @property
    def dots(self) -> WaitingDots:
        return self._dots

    def should_continue(self, backend_requested_continue: bool) -> bool:
        """Whether to request another automatic turn.

        Reaching the cap ends the loop silently even if the backend asks for more.
        """
        if not backend_requested_continue:
            return False
        if self._state.exhausted:
            logger.info(
                "Continuation cap reached (%d/%d); stopping auto-loop",
                self._state.attempt_count,
                self._state.max_attempts,
            )
            return False
        return True

    def record_attempt(self) -> int:
        """Count one automatic turn.

        Returns:
            The new attempt count

        Raises:
            ContinuationLimitError: If the cap is already reached
        """
        if self._state.exhausted:
            raise ContinuationLimitError(
                f"Continuation cap of {self._state.max_attempts} already reached"
            )
        self._state.attempt_count += 1
        logger.debug(
            "Continuation attempt %d/%d", self._state.attempt_count, self._state.max_attempts
        )
        return self._state.attempt_count

    def reset(self) -> None:
        """Zero the attempt count. Called on every human-initiated send."""
        self._state.attempt_count = 0

    async def wait(self, delay_ms: float) -> None:
        """Waiting-dots pause before the next automatic request."""
        await self._dots.play(delay_ms)
