"""Append-only message store.

The store hides the mutable list behind a version counter: observers learn
that "something was committed" from the version alone and read an immutable
snapshot when they need the contents. The version only moves on commit, so a
list view re-renders once per finalized message and never per revealed
character.
"""

import logging
from collections.abc import Callable, Iterator

from .models import Message, MessageRole

logger = logging.getLogger(__name__)

VersionListener = Callable[[int], None]


class MessageStore:
    """Ordered, append-only list of committed messages plus a version counter."""

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._version = 0
        self._listeners: list[VersionListener] = []

    @property
    def version(self) -> int:
        """Monotonic counter, incremented once per commit."""
        return self._version

    def commit(self, role: MessageRole, text: str) -> Message:
        """Append a new immutable message and bump the version.

        Args:
            role: Author of the message
            text: Final message text

        Returns:
            The committed message
        """
        message = Message(role=role, text=text)
        self._messages.append(message)
        self._version += 1
        logger.debug("Committed %s message (version %d)", role.value, self._version)
        for listener in list(self._listeners):
            try:
                listener(self._version)
            except Exception:
                logger.exception("Version listener failed")
        return message

    def subscribe(self, listener: VersionListener) -> Callable[[], None]:
        """Register a version listener.

        Returns:
            Callable that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> tuple[Message, ...]:
        """Return the committed messages in order."""
        return tuple(self._messages)

    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def count(self, role: MessageRole) -> int:
        return sum(1 for m in self._messages if m.role is role)

    def to_context(self, limit: int = 10) -> list[dict[str, str]]:
        """Recent user/assistant messages as role/content dicts.

        Error messages are shown to the user but never sent back as context.

        Args:
            limit: Maximum number of messages to include (0 returns nothing)

        Returns:
            Oldest-first list of ``{"role", "content"}`` dicts
        """
        if limit <= 0:
            return []
        history = [m for m in self._messages if not m.is_error]
        return [{"role": m.role.value, "content": m.text} for m in history[-limit:]]

    def to_context_string(self, limit: int = 10, text_limit: int = 500) -> str:
        """Render recent history as a plain transcript.

        Args:
            limit: Maximum number of messages to include
            text_limit: Character limit per message

        Returns:
            Transcript text, empty if there is no history
        """
        lines = []
        for entry in self.to_context(limit):
            content = entry["content"]
            if len(content) > text_limit:
                content = content[:text_limit] + "..."
            speaker = "User" if entry["role"] == MessageRole.USER.value else "Assistant"
            lines.append(f"{speaker}: {content}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
