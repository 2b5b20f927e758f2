"""Waiting-dots animation shown between automatic turns.

Purely cosmetic: nothing in the engine reads the dot count back.
"""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

DotsListener = Callable[[str], None]


class WaitingDots:
    """Cycles 0 -> 1 -> 2 -> 3 -> 0 dots on a fixed interval while playing."""

    def __init__(self, interval_ms: float = 300, max_dots: int = 3):
        if interval_ms <= 0:
            raise ValueError("interval_ms must be positive")
        if max_dots < 1:
            raise ValueError("max_dots must be at least 1")
        self._interval = interval_ms / 1000.0
        self._max_dots = max_dots
        self._count = 0
        self._playing = False
        self._listeners: list[DotsListener] = []

    @property
    def count(self) -> int:
        return self._count

    @property
    def text(self) -> str:
        return "." * self._count

    @property
    def playing(self) -> bool:
        return self._playing

    def subscribe(self, listener: DotsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def advance(self) -> int:
        """Step to the next dot count and publish it."""
        self._set((self._count + 1) % (self._max_dots + 1))
        return self._count

    async def play(self, duration_ms: float) -> None:
        """Animate for ``duration_ms``; cancellable at any point.

        The dot text is cleared when the phase ends, including on cancellation.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + max(duration_ms, 0) / 1000.0
        self._playing = True
        try:
            while True:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    break
                if remaining < self._interval:
                    await asyncio.sleep(remaining)
                    break
                await asyncio.sleep(self._interval)
                self.advance()
        finally:
            self._playing = False
            self._set(0)

    def _set(self, count: int) -> None:
        if count == self._count:
            return
        self._count = count
        text = self.text
        for listener in list(self._listeners):
            try:
                listener(text)
            except Exception:
                logger.exception("Dots listener failed")
