"""Conversation session module for anima.

Orchestrates the turn lifecycle and signals the assistant's activity.
"""

from .manager import ConversationSessionManager
from .models import TRANSITIONS, ConversationStatus, StatusEvent, next_status
from .status import StatusEmitter

__all__ = [
    "ConversationSessionManager",
    "ConversationStatus",
    "StatusEmitter",
    "StatusEvent",
    "TRANSITIONS",
    "next_status",
]
