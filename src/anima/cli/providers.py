"""Provider factory functions for CLI.

Centralizes creation of the chat backend and engine config from environment
variables. Hides configuration details from command implementations.
"""

import logging
import os
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from ..backend import BackendResponse, ChatBackend, create_chat_backend
from ..config import EngineConfig

# Default console for output
_console = Console()

DEMO_SCRIPT = [
    BackendResponse.ok("Hi! I'm Anima. Give me a second, I just remembered something.", True),
    BackendResponse.ok("You mentioned feeling tired yesterday. Did you get some rest?", True),
    BackendResponse.ok("Either way, I'm glad you're here. What's on your mind?"),
]


def configure_logging(level: str | None) -> None:
    """Route library logging through Rich at the requested level."""
    if level is None:
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_console, rich_tracebacks=True, show_path=False)],
    )


def get_config(**overrides: Any) -> EngineConfig:
    """Create engine config from ``ANIMA_*`` variables plus CLI overrides."""
    return EngineConfig.from_env(**overrides)


def get_backend(kind: str | None = None, console: Console | None = None) -> ChatBackend:
    """Create chat backend from environment variables.

    Args:
        kind: Backend type, overrides ANIMA_BACKEND
        console: Optional Rich console for output

    Returns:
        Chat backend instance

    Raises:
        SystemExit: If the selected backend is not configured

    Environment variables:
        ANIMA_BACKEND: Backend type (http, openai, scripted; default: scripted)
        ANIMA_API_URL: Chat API root (for http backend)
        ANIMA_API_ENDPOINT: Question endpoint path (for http backend)
        ANIMA_API_TOKEN: Bearer token (for http backend, optional)
        OPENAI_API_KEY: OpenAI API key (for openai backend)
        OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4o-mini)
    """
    con = console or _console
    backend = (kind or os.getenv("ANIMA_BACKEND", "scripted")).lower()

    if backend == "http":
        base_url = os.getenv("ANIMA_API_URL")
        if not base_url:
            con.print("[red]Error: ANIMA_API_URL not set in environment[/red]")
            raise typer.Exit(code=1)
        config: dict[str, Any] = {"base_url": base_url}
        endpoint = os.getenv("ANIMA_API_ENDPOINT")
        if endpoint:
            config["endpoint"] = endpoint
        token = os.getenv("ANIMA_API_TOKEN")
        if token:
            config["headers"] = {"Authorization": f"Bearer {token}"}
        return create_chat_backend("http", **config)

    if backend == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            con.print("[red]Error: OPENAI_API_KEY not set in environment[/red]")
            raise typer.Exit(code=1)
        model = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
        return create_chat_backend("openai", api_key=api_key, model=model)

    if backend == "scripted":
        return create_chat_backend("scripted", script=DEMO_SCRIPT, latency_ms=600, repeat_last=True)

    con.print(f"[red]Error: Unknown backend: {backend}[/red]")
    raise typer.Exit(code=1)


def get_context_key() -> str | None:
    """Identity sent with every request (ANIMA_USER_KEY)."""
    return os.getenv("ANIMA_USER_KEY") or None
