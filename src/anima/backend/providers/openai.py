import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, Field, ValidationError

from ..base import ChatBackend
from ..models import BackendRequest, BackendResponse

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a warm, concise companion chatting with the user.

Always reply with a single JSON object and nothing else:
{"answer": "<what you say next>", "continue_conversation": <true|false>}

Set "continue_conversation" to true only when you genuinely have more to add
right after this message without waiting for the user. Keep each answer short."""

CONTINUE_INSTRUCTION = (
    "(The user has not replied. Continue with your next short thought, "
    "or set continue_conversation to false if you are done.)"
)

AUTO_START_INSTRUCTION = (
    "(The user just opened the chat. Greet them briefly and invite them to talk.)"
)


class _ModelReply(BaseModel):
    answer: str = Field(min_length=1)
    continue_conversation: bool = False


class OpenAIChatBackend(ChatBackend):
    """Chat backend answering with an OpenAI chat model.

    Hidden design decisions:
    - AsyncOpenAI client initialization
    - Prompting the model for a structured answer + continuation flag
    - Translating reserved markers into instructions
    - Injecting recent history from session metadata
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        temperature: float = 0.8,
        max_tokens: int | None = 400,
        system_prompt: str = SYSTEM_PROMPT,
        **client_kwargs: Any
    ):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key
            model: Chat model to use
            base_url: Optional custom API base URL
            temperature: Sampling temperature
            max_tokens: Maximum tokens per answer
            system_prompt: Persona/system instructions
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._system_prompt = system_prompt
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url, **client_kwargs)

    @property
    def model(self) -> str:
        """Get the model name."""
        return self._model

    @property
    def backend_type(self) -> str:
        return "openai"

    def _build_messages(self, request: BackendRequest) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": self._system_prompt}]
        for entry in request.history:
            role = entry.get("role")
            if role in ("user", "assistant"):
                messages.append({"role": role, "content": entry.get("content", "")})

        if request.is_continuation:
            content = CONTINUE_INSTRUCTION
        elif request.is_auto_start:
            content = AUTO_START_INSTRUCTION
        else:
            content = request.question
        messages.append({"role": "user", "content": content})
        return messages

    async def send(self, request: BackendRequest) -> BackendResponse:
        """Ask the model for the next answer."""
        request_params: dict[str, Any] = {
            "model": self._model,
            "messages": self._build_messages(request),
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
        }
        if self._max_tokens is not None:
            request_params["max_tokens"] = self._max_tokens

        try:
            completion = await self._client.chat.completions.create(**request_params)
        except OpenAIError as e:
            logger.warning("OpenAI request failed: %s", e)
            return BackendResponse.fail("LLM_ERROR")

        content = completion.choices[0].message.content or ""
        try:
            reply = _ModelReply.model_validate(json.loads(content))
        except (ValueError, ValidationError):
            logger.warning("Model reply was not valid JSON: %.200s", content)
            return BackendResponse.fail("LLM_BAD_RESPONSE")

        return BackendResponse.ok(reply.answer, continue_requested=reply.continue_conversation)

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()
