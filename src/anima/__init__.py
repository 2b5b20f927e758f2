"""
Anima: the conversational message lifecycle engine of a companion chat app.

Takes a user question to a remote AI backend, reveals the answer character by
character on a clock-derived schedule, and drives a bounded auto-continuation
loop. Each subpackage hides one design decision: message storage, reveal
timing, continuation policy, backend transport, and turn orchestration.
"""

__version__ = "0.1.0"

from .backend import BackendRequest, BackendResponse, ChatBackend, create_chat_backend
from .config import EngineConfig
from .continuation import ContinuationController, WaitingDots
from .errors import AnimaError, BackendError, ContinuationLimitError, MissingIdentityError
from .messages import Message, MessageRole, MessageStore
from .reveal import ManualClock, RevealProgress, RevealScheduler, TypingSession
from .session import ConversationSessionManager, ConversationStatus, StatusEmitter

__all__ = [
    "AnimaError",
    "BackendError",
    "BackendRequest",
    "BackendResponse",
    "ChatBackend",
    "ContinuationController",
    "ContinuationLimitError",
    "ConversationSessionManager",
    "ConversationStatus",
    "EngineConfig",
    "ManualClock",
    "Message",
    "MessageRole",
    "MessageStore",
    "MissingIdentityError",
    "RevealProgress",
    "RevealScheduler",
    "StatusEmitter",
    "TypingSession",
    "WaitingDots",
    "create_chat_backend",
]
