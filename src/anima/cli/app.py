"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.live import Live
from rich.text import Text

from ..messages import Message, MessageRole
from ..session import ConversationSessionManager, ConversationStatus
from .providers import configure_logging, get_backend, get_config, get_context_key

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="anima",
    help="Companion chat engine with timed reveal and bounded auto-continuation",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

QUIT_COMMANDS = {"/quit", "/exit", "/q"}

_ROLE_STYLES = {
    MessageRole.USER: ("you", "bold cyan"),
    MessageRole.ASSISTANT: ("anima", "bold magenta"),
    MessageRole.SYSTEM_ERROR: ("error", "bold red"),
}


def _format_message(message: Message) -> Text:
    label, style = _ROLE_STYLES[message.role]
    line = Text(f"{label}> ", style=style)
    line.append(message.text, style="red" if message.is_error else "")
    return line


def _render_live(manager: ConversationSessionManager) -> Text:
    """The one element that changes per revealed character."""
    progress = manager.scheduler.progress
    if progress is not None:
        line = Text("anima> ", style="bold magenta")
        line.append(progress.text)
        line.append("▌", style="dim")
        return line
    if manager.status is ConversationStatus.SENDING:
        dots = manager.status_emitter.waiting_text
        return Text(f"anima is thinking{dots}", style="dim italic")
    return Text("")


async def _run_turn_view(manager: ConversationSessionManager) -> None:
    """Render one turn until the engine is idle again.

    The message list is printed only when the store version moves; the reveal
    line is redrawn from the scheduler's progress channel.
    """
    printed = len(manager.store)

    with Live(_render_live(manager), console=console, refresh_per_second=30, transient=True) as live:
        def refresh(*_: object) -> None:
            live.update(_render_live(manager))

        def print_committed(_version: int) -> None:
            nonlocal printed
            for message in manager.store.snapshot()[printed:]:
                if message.role is not MessageRole.USER:
                    live.console.print(_format_message(message))
            printed = len(manager.store)
            refresh()

        unsubscribers = [
            manager.scheduler.subscribe(refresh),
            manager.status_emitter.subscribe(refresh),
            manager.status_emitter.subscribe_waiting_text(refresh),
            manager.store.subscribe(print_committed),
        ]
        try:
            await manager.wait_idle()
        finally:
            for unsubscribe in unsubscribers:
                unsubscribe()


@app.command()
def chat(
    backend: str = typer.Option(
        None,
        "--backend",
        "-b",
        help="Backend to use: http, openai or scripted (default: $ANIMA_BACKEND)"
    ),
    speed: float = typer.Option(
        None,
        "--speed",
        "-s",
        help="Milliseconds per revealed character"
    ),
    max_continuations: int = typer.Option(
        None,
        "--max-continuations",
        "-m",
        help="Cap on automatic follow-up turns"
    ),
    user_key: str = typer.Option(
        None,
        "--user-key",
        "-u",
        help="Identity sent to the backend (default: $ANIMA_USER_KEY)"
    ),
    greet: bool = typer.Option(
        False,
        "--greet",
        help="Let the assistant open the conversation"
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Show engine logs at this level (debug, info, warning, error)"
    ),
):
    """Chat interactively in the terminal."""
    configure_logging(log_level)

    async def _chat():
        config = get_config(typing_speed_ms=speed, max_continuations=max_continuations)
        chat_backend = get_backend(backend, console)
        context_key = user_key or get_context_key()
        if context_key is None and chat_backend.backend_type == "scripted":
            context_key = "demo-user"

        async with chat_backend:
            async with ConversationSessionManager(
                chat_backend, config=config, context_key=context_key
            ) as manager:
                console.print("[dim]Type a message, or /quit to leave.[/dim]")
                if greet and manager.greet():
                    await _run_turn_view(manager)

                while True:
                    try:
                        text = await asyncio.to_thread(console.input, "[bold cyan]you> [/]")
                    except (EOFError, KeyboardInterrupt):
                        break
                    if text.strip() in QUIT_COMMANDS:
                        break
                    if not manager.submit(text):
                        continue
                    await _run_turn_view(manager)

    try:
        asyncio.run(_chat())
    except KeyboardInterrupt:
        pass
    console.print("[dim]Bye.[/dim]")


@app.command()
def demo(
    question: str = typer.Argument(
        "hello",
        help="Message to send"
    ),
    speed: float = typer.Option(
        25,
        "--speed",
        "-s",
        help="Milliseconds per revealed character"
    ),
    max_continuations: int = typer.Option(
        5,
        "--max-continuations",
        "-m",
        help="Cap on automatic follow-up turns"
    ),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help="Show engine logs at this level (debug, info, warning, error)"
    ),
):
    """Run one scripted turn with auto-continuation, offline."""
    configure_logging(log_level)

    async def _demo():
        config = get_config(typing_speed_ms=speed, max_continuations=max_continuations)
        async with get_backend("scripted", console) as chat_backend:
            async with ConversationSessionManager(
                chat_backend, config=config, context_key="demo-user"
            ) as manager:
                console.print(Text(f"you> {question}", style="bold cyan"))
                manager.submit(question)
                await _run_turn_view(manager)

                assistant_turns = manager.store.count(MessageRole.ASSISTANT)
                console.print(
                    f"[dim]{assistant_turns} assistant message(s), "
                    f"store version {manager.store.version}, status {manager.status.value}[/dim]"
                )

    asyncio.run(_demo())


if __name__ == "__main__":
    app()
