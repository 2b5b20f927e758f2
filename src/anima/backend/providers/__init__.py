from .http import HttpChatBackend
from .openai import OpenAIChatBackend
from .scripted import ScriptedChatBackend

__all__ = ["HttpChatBackend", "OpenAIChatBackend", "ScriptedChatBackend"]
