"""Conversation status values and the transition table between them."""

from enum import Enum


class ConversationStatus(str, Enum):
    """What the assistant is doing right now."""

    IDLE = "idle"
    SENDING = "sending"
    TYPING = "typing"
    ERROR = "error"


class StatusEvent(str, Enum):
    """Lifecycle events that move the status."""

    SUBMIT = "submit"                        # Human or auto-start turn dispatched
    RESPONSE_OK = "response_ok"              # Answer received, reveal begins
    RESPONSE_FAIL = "response_fail"          # Backend failure committed
    PRECONDITION_FAIL = "precondition_fail"  # No identity, turn aborted
    CONTINUE = "continue"                    # Automatic follow-up requested
    REVEAL_DONE = "reveal_done"              # Answer committed, loop finished
    EMPTY_ANSWER = "empty_answer"            # Nothing to reveal
    GRACE_ELAPSED = "grace_elapsed"          # Error shown long enough
    CANCELLED = "cancelled"                  # Turn aborted by the owner


# Each event leads to exactly one status, whatever the current one is.
TRANSITIONS: dict[StatusEvent, ConversationStatus] = {
    StatusEvent.SUBMIT: ConversationStatus.SENDING,
    StatusEvent.RESPONSE_OK: ConversationStatus.TYPING,
    StatusEvent.RESPONSE_FAIL: ConversationStatus.ERROR,
    StatusEvent.PRECONDITION_FAIL: ConversationStatus.ERROR,
    StatusEvent.CONTINUE: ConversationStatus.SENDING,
    StatusEvent.REVEAL_DONE: ConversationStatus.IDLE,
    StatusEvent.EMPTY_ANSWER: ConversationStatus.IDLE,
    StatusEvent.GRACE_ELAPSED: ConversationStatus.IDLE,
    StatusEvent.CANCELLED: ConversationStatus.IDLE,
}


def next_status(event: StatusEvent) -> ConversationStatus:
    return TRANSITIONS[event]
