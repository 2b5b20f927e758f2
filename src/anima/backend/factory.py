from typing import Any

from .base import ChatBackend
from .providers import HttpChatBackend, OpenAIChatBackend, ScriptedChatBackend


def create_chat_backend(kind: str, **config: Any) -> ChatBackend:
    """Create a chat backend instance.

    This factory function hides the instantiation logic for different backends.

    Args:
        kind: Backend type ('http', 'openai', 'scripted')
        **config: Backend-specific configuration
            For http:
                - base_url: str (required)
                - endpoint: str (default: '/api/chat/manager-question')
                - timeout: float (default: 60.0)
                - headers: dict[str, str] | None
            For openai:
                - api_key: str (required)
                - model: str (default: 'gpt-4o-mini')
                - base_url: str | None
            For scripted:
                - script: list of responses, answers or exceptions
                - responder: callable producing a response per request
                - latency_ms: float (default: 0)
                - repeat_last: bool (default: False)

    Returns:
        Initialized chat backend

    Raises:
        ValueError: If backend type is not supported
        TypeError: If required configuration is missing

    Examples:
        >>> backend = create_chat_backend(
        ...     "http",
        ...     base_url="https://api.example.com"
        ... )

        >>> backend = create_chat_backend("scripted", script=["hi there"])
    """
    kind_lower = kind.lower()

    if kind_lower == "http":
        if "base_url" not in config:
            raise TypeError("HTTP backend requires 'base_url' in config")
        return HttpChatBackend(**config)

    if kind_lower == "openai":
        if "api_key" not in config:
            raise TypeError("OpenAI backend requires 'api_key' in config")
        return OpenAIChatBackend(**config)

    if kind_lower == "scripted":
        return ScriptedChatBackend(**config)

    raise ValueError(
        f"Unsupported backend: {kind}. "
        f"Supported backends: 'http', 'openai', 'scripted'"
    )
