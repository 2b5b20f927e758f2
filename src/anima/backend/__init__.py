from .base import ChatBackend
from .factory import create_chat_backend
from .models import BackendRequest, BackendResponse
from .providers import HttpChatBackend, OpenAIChatBackend, ScriptedChatBackend

__all__ = [
    "ChatBackend",
    "create_chat_backend",
    "BackendRequest",
    "BackendResponse",
    "HttpChatBackend",
    "OpenAIChatBackend",
    "ScriptedChatBackend",
]
