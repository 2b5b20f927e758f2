"""Conversation session manager.

The top-level state machine for one conversational surface:

    idle --submit--> sending --ok--> typing --revealed--> idle
                        |                        |
                        +--fail--> error --grace--> idle
                                                 +--continue--> sending

This module hides:
- Turn sequencing (dispatch, reveal, commit, continuation)
- The liveness token that discards work finishing after teardown
- Conversion of every turn-time failure into a committed error message

Only this class writes to the MessageStore. Observers read the store's
version counter, the status emitter and the reveal scheduler's progress
channel; none of them see the turn's internal state.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from ..backend import BackendRequest, BackendResponse, ChatBackend
from ..config import EngineConfig
from ..continuation import ContinuationController, WaitingDots
from ..errors import BackendError, MissingIdentityError
from ..messages import MessageRole, MessageStore
from ..reveal import RevealProgress, RevealScheduler, monotonic_ms
from .models import ConversationStatus, StatusEvent
from .status import StatusEmitter

logger = logging.getLogger(__name__)


class ConversationSessionManager:
    """Runs one turn at a time against a chat backend.

    ``submit`` and ``greet`` must be called from inside a running event loop;
    the turn itself runs as a task. New submissions are rejected, not queued,
    until the status is back to ``idle``.

    Usage:
        async with ConversationSessionManager(backend, context_key="u-1") as chat:
            chat.submit("hello")
            await chat.wait_idle()
            print([m.text for m in chat.store])
    """

    def __init__(
        self,
        backend: ChatBackend,
        config: EngineConfig | None = None,
        context_key: str | None = None,
        session_metadata: dict[str, Any] | None = None,
        clock: Callable[[], float] = monotonic_ms,
        store: MessageStore | None = None,
        scheduler: RevealScheduler | None = None,
        continuation: ContinuationController | None = None,
        status: StatusEmitter | None = None,
    ) -> None:
        self._config = config or EngineConfig()
        self._backend = backend
        self._context_key = context_key
        self._session_metadata = dict(session_metadata or {})
        self._store = store or MessageStore()
        self._scheduler = scheduler or RevealScheduler(
            clock=clock, tick_interval_ms=self._config.tick_interval_ms
        )
        self._continuation = continuation or ContinuationController(
            max_attempts=self._config.max_continuations,
            dots=WaitingDots(interval_ms=self._config.dots_interval_ms),
        )
        self._status = status or StatusEmitter()

        self._turn: asyncio.Task[None] | None = None
        self._generation = 0
        self._closed = False
        self._revealed_length = 0

        self._scheduler.subscribe(self._observe_reveal)
        self._continuation.dots.subscribe(self._status.set_waiting_text)

    # Read surfaces

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def store(self) -> MessageStore:
        """Committed messages and their version counter."""
        return self._store

    @property
    def status(self) -> ConversationStatus:
        return self._status.status

    @property
    def status_emitter(self) -> StatusEmitter:
        return self._status

    @property
    def scheduler(self) -> RevealScheduler:
        """Publish channel for the answer currently being revealed."""
        return self._scheduler

    @property
    def continuation(self) -> ContinuationController:
        return self._continuation

    @property
    def revealed_length(self) -> int:
        """Last revealed length observed on the scheduler's publish channel."""
        return self._revealed_length

    @property
    def attempt_count(self) -> int:
        return self._continuation.attempt_count

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def context_key(self) -> str | None:
        return self._context_key

    def set_context_key(self, context_key: str | None) -> None:
        """Swap the identity used for later turns (e.g. after sign-in)."""
        self._context_key = context_key

    # Input boundary

    def submit(self, text: str) -> bool:
        """Start a human turn.

        Args:
            text: The user's message

        Returns:
            False if the call was ignored (blank text, busy, or closed)
        """
        if self._closed:
            logger.debug("Ignoring submit after close")
            return False
        if not text or not text.strip():
            return False
        if self._status.status is not ConversationStatus.IDLE:
            logger.debug("Ignoring submit while %s", self._status.status.value)
            return False

        text = text.strip()
        self._continuation.reset()
        history = self._history()
        self._store.commit(MessageRole.USER, text)
        self._status.apply(StatusEvent.SUBMIT)
        logger.info("Turn started (%d chars)", len(text))
        self._begin_turn(text, history)
        return True

    def greet(self) -> bool:
        """Ask the backend to open the conversation without user text.

        Returns:
            False if the call was ignored (busy or closed)
        """
        if self._closed or self._status.status is not ConversationStatus.IDLE:
            return False
        self._continuation.reset()
        self._status.apply(StatusEvent.SUBMIT)
        logger.info("Auto-start turn started")
        self._begin_turn(self._config.auto_start_marker, self._history())
        return True

    async def wait_idle(self) -> None:
        """Wait for the current turn, including continuations and error grace."""
        task = self._turn
        if task is not None and task is not asyncio.current_task() and not task.done():
            await asyncio.wait([task])

    async def cancel_turn(self) -> bool:
        """Abort the in-flight turn and return to idle.

        Nothing from the aborted turn is committed afterwards.

        Returns:
            True if a turn was running
        """
        task = self._turn
        if self._closed or task is None or task.done():
            return False
        self._generation += 1
        self._scheduler.cancel()
        await self._stop(task)
        self._continuation.reset()
        self._status.apply(StatusEvent.CANCELLED)
        logger.info("Turn cancelled")
        return True

    async def close(self) -> None:
        """Tear down: cancel timers, the reveal and any pending request.

        Terminal. No transition or commit happens after this returns, even if
        a backend response arrives late.
        """
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._scheduler.cancel()
        task = self._turn
        self._turn = None
        if task is not None and not task.done():
            await self._stop(task)
        logger.info("Session closed")

    async def __aenter__(self) -> "ConversationSessionManager":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    # Turn lifecycle

    def _begin_turn(self, question: str, history: list[dict[str, str]]) -> None:
        loop = asyncio.get_running_loop()
        self._turn = loop.create_task(self._run_turn(question, history, self._generation))

    def _is_live(self, token: int) -> bool:
        return not self._closed and token == self._generation

    async def _run_turn(
        self,
        question: str,
        history: list[dict[str, str]],
        token: int,
    ) -> None:
        try:
            await self._turn_loop(question, history, token)
        except Exception:
            logger.exception("Turn failed unexpectedly")
            if self._is_live(token):
                self._scheduler.cancel()
                await self._fail(self._config.generic_error_text, StatusEvent.RESPONSE_FAIL, token)

    async def _turn_loop(
        self,
        question: str,
        history: list[dict[str, str]],
        token: int,
    ) -> None:
        while True:
            try:
                request = self._build_request(question, history)
            except MissingIdentityError:
                logger.warning("No context key available; turn aborted before dispatch")
                await self._fail(
                    self._config.identity_error_text, StatusEvent.PRECONDITION_FAIL, token
                )
                return

            response = await self._dispatch(request)
            if not self._is_live(token):
                logger.info("Discarding stale backend response")
                return

            if not response.success:
                logger.warning("Backend failure: %s", response.error_code)
                await self._fail(self._config.generic_error_text, StatusEvent.RESPONSE_FAIL, token)
                return

            if not response.answer.strip():
                logger.info("Backend returned an empty answer; ending turn")
                self._continuation.reset()
                self._status.apply(StatusEvent.EMPTY_ANSWER)
                return

            self._status.apply(StatusEvent.RESPONSE_OK)
            full_text = await self._reveal(response.answer)
            if not self._is_live(token):
                return
            self._store.commit(MessageRole.ASSISTANT, full_text)

            if not self._continuation.should_continue(response.continue_requested):
                self._continuation.reset()
                self._status.apply(StatusEvent.REVEAL_DONE)
                logger.info("Turn finished")
                return

            attempt = self._continuation.record_attempt()
            self._status.apply(StatusEvent.CONTINUE)
            logger.info(
                "Auto-continuing (%d/%d)", attempt, self._continuation.max_attempts
            )
            await self._continuation.wait(self._config.continue_delay_ms)
            if not self._is_live(token):
                return
            question = self._config.continue_marker
            history = self._history()

    def _build_request(self, question: str, history: list[dict[str, str]]) -> BackendRequest:
        if not self._context_key:
            raise MissingIdentityError("no context key for this session")
        metadata = dict(self._session_metadata)
        if history:
            metadata["history"] = history
        return BackendRequest(
            question=question,
            context_key=self._context_key,
            session_metadata=metadata or None,
            continue_marker=self._config.continue_marker,
            auto_start_marker=self._config.auto_start_marker,
        )

    async def _dispatch(self, request: BackendRequest) -> BackendResponse:
        """The single backend call for one ``sending`` entry."""
        try:
            return await self._backend.send(request)
        except BackendError as e:
            return BackendResponse.fail(e.error_code)
        except Exception:
            logger.exception("Backend raised while answering")
            return BackendResponse.fail("BACKEND_EXCEPTION")

    async def _reveal(self, answer: str) -> str:
        """Run one reveal session and wait for its completion signal."""
        done: asyncio.Future[str] = asyncio.get_running_loop().create_future()

        def _complete(full_text: str) -> None:
            if not done.done():
                done.set_result(full_text)

        def _error(exc: Exception) -> None:
            if not done.done():
                done.set_exception(exc)

        self._revealed_length = 0
        self._scheduler.start(
            answer, self._config.typing_speed_ms, on_complete=_complete, on_error=_error
        )
        try:
            return await done
        finally:
            if not done.done() or done.cancelled():
                self._scheduler.cancel()

    async def _fail(self, text: str, event: StatusEvent, token: int) -> None:
        """Commit one error message, show ``error`` for the grace period, then idle."""
        self._store.commit(MessageRole.SYSTEM_ERROR, text)
        self._continuation.reset()
        self._status.apply(event)
        await asyncio.sleep(self._config.error_grace_ms / 1000.0)
        if self._is_live(token):
            self._status.apply(StatusEvent.GRACE_ELAPSED)

    def _history(self) -> list[dict[str, str]]:
        return self._store.to_context(self._config.history_limit)

    def _observe_reveal(self, progress: RevealProgress) -> None:
        self._revealed_length = progress.revealed_length

    async def _stop(self, task: asyncio.Task[None]) -> None:
        task.cancel()
        if task is not asyncio.current_task():
            await asyncio.wait([task])
