"""Scripted chat backend.

Replays a fixed list of responses. Used by tests and the CLI demo.
"""

import asyncio
from collections.abc import Callable, Sequence

from ..base import ChatBackend
from ..models import BackendRequest, BackendResponse

ScriptItem = BackendResponse | str | Exception
Responder = Callable[[BackendRequest], ScriptItem]


class ScriptedChatBackend(ChatBackend):
    """Deterministic backend that answers from a script.

    Each call consumes the next script item. A string is an answer without
    continuation, an exception is raised from ``send``. When the script runs
    out the last item repeats if ``repeat_last`` is set, otherwise a
    ``SCRIPT_EXHAUSTED`` failure is returned.
    """

    def __init__(
        self,
        script: Sequence[ScriptItem] | None = None,
        responder: Responder | None = None,
        latency_ms: float = 0.0,
        repeat_last: bool = False,
    ):
        if script is None and responder is None:
            raise TypeError("ScriptedChatBackend requires a 'script' or a 'responder'")
        self._script = list(script or [])
        self._responder = responder
        self._latency = latency_ms / 1000.0
        self._repeat_last = repeat_last
        self._position = 0
        self.requests: list[BackendRequest] = []
        self.closed = False

    @property
    def backend_type(self) -> str:
        return "scripted"

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def continuation_calls(self) -> int:
        return sum(1 for r in self.requests if r.is_continuation)

    def _next_item(self, request: BackendRequest) -> ScriptItem:
        if self._responder is not None:
            return self._responder(request)
        if self._position < len(self._script):
            item = self._script[self._position]
            self._position += 1
            return item
        if self._repeat_last and self._script:
            return self._script[-1]
        return BackendResponse.fail("SCRIPT_EXHAUSTED")

    async def send(self, request: BackendRequest) -> BackendResponse:
        self.requests.append(request)
        if self._latency > 0:
            await asyncio.sleep(self._latency)
        item = self._next_item(request)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, str):
            return BackendResponse.ok(item)
        return item

    async def close(self) -> None:
        self.closed = True
