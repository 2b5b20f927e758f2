"""HTTP backend for the companion chat API."""

import logging
from typing import Any

import httpx

from ..base import ChatBackend
from ..models import BackendRequest, BackendResponse

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "/api/chat/manager-question"
DEFAULT_TIMEOUT = 60.0


def error_code_for_status(status_code: int, body: Any = None) -> str:
    """Map an HTTP error response to a backend error code.

    The server's own ``error_code`` wins; otherwise the status class decides.
    """
    if isinstance(body, dict):
        code = body.get("error_code")
        nested = body.get("error")
        if not code and isinstance(nested, dict):
            code = nested.get("error_code")
        if code:
            return str(code)
    if status_code == 401:
        return "AUTH_ERROR"
    if status_code == 403:
        return "FORBIDDEN"
    if status_code == 404:
        return "NOT_FOUND"
    if 500 <= status_code < 600:
        return "SERVER_ERROR"
    return f"HTTP_{status_code}"


class HttpChatBackend(ChatBackend):
    """Chat backend speaking JSON over HTTP.

    Hidden design decisions:
    - httpx client lifecycle and timeouts
    - Request body layout (``question`` plus ``user_key``)
    - Translation of transport and status errors into error codes
    """

    def __init__(
        self,
        base_url: str,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout: float = DEFAULT_TIMEOUT,
        headers: dict[str, str] | None = None,
        client: httpx.AsyncClient | None = None,
        **client_kwargs: Any
    ):
        """Initialize HTTP backend.

        Args:
            base_url: API root, e.g. ``https://api.example.com``
            endpoint: Path of the question endpoint
            timeout: Request timeout in seconds
            headers: Extra headers (e.g. authorization)
            client: Pre-built client (tests inject one with a mock transport)
            **client_kwargs: Additional kwargs for httpx.AsyncClient
        """
        self._endpoint = endpoint
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            **client_kwargs
        )

    @property
    def backend_type(self) -> str:
        return "http"

    def _build_body(self, request: BackendRequest) -> dict[str, Any]:
        body: dict[str, Any] = dict(request.session_metadata or {})
        body["question"] = request.question
        body["user_key"] = request.context_key
        return body

    async def send(self, request: BackendRequest) -> BackendResponse:
        """POST the question and normalize the reply."""
        try:
            response = await self._client.post(self._endpoint, json=self._build_body(request))
        except httpx.TimeoutException:
            logger.warning("Chat request timed out")
            return BackendResponse.fail("TIMEOUT")
        except httpx.RequestError as e:
            logger.warning("Chat request failed: %s", e)
            return BackendResponse.fail("NETWORK_ERROR")

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            code = error_code_for_status(response.status_code, body)
            logger.warning("Chat API returned %d (%s)", response.status_code, code)
            return BackendResponse.fail(code)

        return BackendResponse.from_payload(body)

    async def close(self) -> None:
        """Close the HTTP client if this backend created it."""
        if self._owns_client:
            await self._client.aclose()
