"""Message store module for anima.

Holds finalized conversation messages and signals commits via a version counter.
"""

from .models import Message, MessageRole
from .store import MessageStore

__all__ = [
    "Message",
    "MessageRole",
    "MessageStore",
]
