"""Reveal scheduler: timed, character-by-character disclosure of one answer.

This module hides:
- How elapsed time maps to a visible prefix
- How ticks are driven (event-loop task or an external frame loop)
- Session preemption and cancellation

At most one TypingSession is alive at a time. Progress is published to
subscribers only when the visible length grows; completion is delivered to the
callback passed to ``start`` exactly once, on the tick that reaches the end.
A listener that raises is logged and skipped; a failure of the tick loop
itself is reported to the ``on_error`` callback instead.
"""

import asyncio
import logging
from collections.abc import Callable

from .clock import monotonic_ms
from .models import RevealProgress, TypingSession

logger = logging.getLogger(__name__)

ProgressListener = Callable[[RevealProgress], None]
CompletionCallback = Callable[[str], None]
ErrorCallback = Callable[[Exception], None]


class RevealScheduler:
    """Cooperative tick loop revealing one string on a fixed schedule.

    Usage:
        scheduler = RevealScheduler()
        scheduler.subscribe(lambda p: print(p.text))
        scheduler.start("hi there", speed_ms_per_char=30, on_complete=commit)

    With ``autorun=False`` nothing is scheduled on the event loop and the
    owner calls ``tick()`` itself, e.g. from a render loop or a test.
    """

    def __init__(
        self,
        clock: Callable[[], float] = monotonic_ms,
        tick_interval_ms: float = 16,
        autorun: bool = True,
    ):
        if tick_interval_ms <= 0:
            raise ValueError("tick_interval_ms must be positive")
        self._clock = clock
        self._tick_interval = tick_interval_ms / 1000.0
        self._autorun = autorun
        self._session: TypingSession | None = None
        self._on_complete: CompletionCallback | None = None
        self._on_error: ErrorCallback | None = None
        self._task: asyncio.Task[None] | None = None
        self._listeners: list[ProgressListener] = []

    @property
    def active(self) -> bool:
        return self._session is not None

    @property
    def session(self) -> TypingSession | None:
        return self._session

    @property
    def progress(self) -> RevealProgress | None:
        """Snapshot of the active session, if any."""
        if self._session is None:
            return None
        return RevealProgress(self._session.full_text, self._session.revealed_length)

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a progress listener.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(
        self,
        full_text: str,
        speed_ms_per_char: float,
        on_complete: CompletionCallback | None = None,
        on_error: ErrorCallback | None = None,
    ) -> TypingSession:
        """Begin revealing ``full_text``.

        Any active session is superseded; its completion callback never fires.

        Args:
            full_text: Non-empty text to reveal
            speed_ms_per_char: Milliseconds per character, must be positive
            on_complete: Called once with the full text when fully revealed
            on_error: Called instead of ``on_complete`` if the tick loop fails

        Returns:
            The new TypingSession

        Raises:
            ValueError: If the text is empty or the speed is not positive
        """
        if not full_text:
            raise ValueError("full_text must be non-empty")
        if speed_ms_per_char <= 0:
            raise ValueError("speed_ms_per_char must be positive")

        if self._session is not None:
            logger.debug("Superseding active reveal (%d chars)", self._session.total_length)
        self.cancel()

        session = TypingSession(
            full_text=full_text,
            speed_ms_per_char=speed_ms_per_char,
            started_at=self._clock(),
        )
        self._session = session
        self._on_complete = on_complete
        self._on_error = on_error
        logger.debug(
            "Reveal started: %d chars at %sms/char (~%.0fms)",
            session.total_length,
            speed_ms_per_char,
            session.expected_duration_ms,
        )

        if self._autorun:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                loop = None
            if loop is not None:
                self._task = loop.create_task(self._drive(session))
        return session

    def tick(self) -> bool:
        """Advance the active session to the position implied by the clock.

        Returns:
            True if a session is still revealing after this tick
        """
        session = self._session
        if session is None:
            return False

        target = session.target_index(self._clock())
        if target > session.revealed_length:
            session.revealed_length = target
            progress = RevealProgress(session.full_text, target)
            for listener in list(self._listeners):
                try:
                    listener(progress)
                except Exception:
                    logger.exception("Progress listener failed")

        if session is not self._session:
            # A listener started or cancelled a reveal
            return self._session is not None

        if not session.finished:
            return True

        callback = self._on_complete
        self._session = None
        self._on_complete = None
        self._on_error = None
        self._task = None
        logger.debug("Reveal complete (%d chars)", session.total_length)
        if callback is not None:
            callback(session.full_text)
        return self._session is not None

    def cancel(self) -> None:
        """Stop the active session without completing it. Safe when idle."""
        task = self._task
        self._session = None
        self._on_complete = None
        self._on_error = None
        self._task = None
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    async def _drive(self, session: TypingSession) -> None:
        """Tick ``session`` from the event loop until it ends or is replaced."""
        try:
            while self._session is session:
                await asyncio.sleep(self._tick_interval)
                if self._session is not session:
                    break
                self.tick()
        except Exception as e:
            logger.exception("Reveal tick failed; abandoning session")
            if self._session is session:
                on_error = self._on_error
                self._session = None
                self._on_complete = None
                self._on_error = None
                self._task = None
                if on_error is not None:
                    on_error(e)
