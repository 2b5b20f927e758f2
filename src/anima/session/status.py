"""Status emitter for ambient UI.

Exposes one ConversationStatus value plus the optional waiting-dots text,
independent of message content.
"""

import logging
from collections import deque
from collections.abc import Callable

from .models import ConversationStatus, StatusEvent, next_status

logger = logging.getLogger(__name__)

StatusListener = Callable[[ConversationStatus], None]
TextListener = Callable[[str], None]

HISTORY_SIZE = 64  # Recent statuses kept for diagnostics


class StatusEmitter:
    """Holds the live status and notifies listeners when it changes."""

    def __init__(self, initial: ConversationStatus = ConversationStatus.IDLE):
        self._status = initial
        self._waiting_text = ""
        self._history: deque[ConversationStatus] = deque([initial], maxlen=HISTORY_SIZE)
        self._listeners: list[StatusListener] = []
        self._text_listeners: list[TextListener] = []

    @property
    def status(self) -> ConversationStatus:
        return self._status

    @property
    def waiting_text(self) -> str:
        """Waiting-dots text layered on top of ``sending``; empty otherwise."""
        return self._waiting_text

    @property
    def history(self) -> list[ConversationStatus]:
        """Most recent statuses taken, oldest first."""
        return list(self._history)

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def subscribe_waiting_text(self, listener: TextListener) -> Callable[[], None]:
        self._text_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._text_listeners:
                self._text_listeners.remove(listener)

        return unsubscribe

    def apply(self, event: StatusEvent) -> ConversationStatus:
        """Move to the status ``event`` leads to.

        Returns:
            The new status
        """
        new_status = next_status(event)
        if new_status is not self._status:
            logger.debug("Status %s -> %s (%s)", self._status.value, new_status.value, event.value)
            self._status = new_status
            self._history.append(new_status)
            for listener in list(self._listeners):
                try:
                    listener(new_status)
                except Exception:
                    logger.exception("Status listener failed")
        return new_status

    def set_waiting_text(self, text: str) -> None:
        if text == self._waiting_text:
            return
        self._waiting_text = text
        for listener in list(self._text_listeners):
            try:
                listener(text)
            except Exception:
                logger.exception("Waiting-text listener failed")
