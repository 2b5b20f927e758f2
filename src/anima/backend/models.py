"""Request/response models for the chat backend."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import AUTO_START_MARKER, CONTINUE_MARKER


class BackendRequest(BaseModel):
    """One logical request to the AI backend."""

    model_config = ConfigDict(frozen=True)

    question: str = Field(description="User text, or a reserved marker")
    context_key: str = Field(min_length=1, description="Identity/session key for the backend")
    session_metadata: dict[str, Any] | None = Field(
        default=None,
        description="Optional extra context (e.g. recent history)"
    )
    continue_marker: str = Field(default=CONTINUE_MARKER, exclude=True)
    auto_start_marker: str = Field(default=AUTO_START_MARKER, exclude=True)

    @property
    def is_continuation(self) -> bool:
        """True when asking for the next turn without new user input."""
        return self.question == self.continue_marker

    @property
    def is_auto_start(self) -> bool:
        return self.question == self.auto_start_marker

    @property
    def history(self) -> list[dict[str, str]]:
        if not self.session_metadata:
            return []
        return list(self.session_metadata.get("history") or [])


class BackendResponse(BaseModel):
    """Outcome of a backend request: an answer or an error code."""

    model_config = ConfigDict(frozen=True)

    success: bool
    answer: str = ""
    continue_requested: bool = False
    error_code: str | None = None

    @model_validator(mode="after")
    def _failure_has_code(self) -> "BackendResponse":
        if not self.success and not self.error_code:
            raise ValueError("failed responses must carry an error_code")
        return self

    @classmethod
    def ok(cls, answer: str, continue_requested: bool = False) -> "BackendResponse":
        return cls(success=True, answer=answer, continue_requested=continue_requested)

    @classmethod
    def fail(cls, error_code: str) -> "BackendResponse":
        return cls(success=False, error_code=error_code)

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> "BackendResponse":
        """Normalize a decoded server payload.

        Accepts both the server's snake_case keys (``continue_conversation``,
        ``error_code``) and the camelCase form (``continueRequested``,
        ``errorCode``). A payload nested under ``data`` is unwrapped.

        Args:
            payload: Decoded JSON body

        Returns:
            BackendResponse; malformed payloads become a BAD_RESPONSE failure
        """
        if not isinstance(payload, dict):
            return cls.fail("BAD_RESPONSE")
        if isinstance(payload.get("data"), dict):
            payload = {**payload["data"], **{k: v for k, v in payload.items() if k != "data"}}

        error_code = payload.get("error_code") or payload.get("errorCode")
        if not error_code and isinstance(payload.get("error"), dict):
            error_code = payload["error"].get("error_code")
        if payload.get("success") is False or error_code:
            return cls.fail(str(error_code or "BACKEND_ERROR"))

        answer = payload.get("answer")
        if not isinstance(answer, str):
            return cls.fail("BAD_RESPONSE")
        continue_requested = payload.get(
            "continue_conversation", payload.get("continueRequested", False)
        )
        return cls.ok(answer, continue_requested=bool(continue_requested))
