from abc import ABC, abstractmethod
from typing import Any

from .models import BackendRequest, BackendResponse


class ChatBackend(ABC):
    """Abstract base class for the remote AI backend.

    This module hides the design decision of how answers are produced.
    Implementations must handle:
    - Transport and authentication
    - Mapping the request onto the provider's wire format
    - Converting provider errors into failure responses

    ``send`` should return ``BackendResponse.fail(...)`` for expected
    failures; any exception it raises is treated the same way by the session
    manager. It must stay cancellable: the manager cancels it on teardown.

    Supports async context manager protocol for proper resource cleanup:
        async with backend:
            response = await backend.send(request)
    """

    @abstractmethod
    async def send(self, request: BackendRequest) -> BackendResponse:
        """Send one question and wait for the answer.

        Args:
            request: Question, context key and optional session metadata

        Returns:
            BackendResponse with either an answer or an error code
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""

    async def __aenter__(self) -> "ChatBackend":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup, a
        known harmless race in httpx/anyio shutdown.
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
