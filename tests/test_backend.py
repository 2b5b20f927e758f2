"""Unit tests for the backend module."""
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from anima.backend import (
    BackendRequest,
    BackendResponse,
    ChatBackend,
    HttpChatBackend,
    OpenAIChatBackend,
    ScriptedChatBackend,
    create_chat_backend,
)
from anima.backend.providers.http import error_code_for_status


class TestBackendModels:
    """Tests for request/response models."""

    def test_continuation_marker(self):
        request = BackendRequest(question="[CONTINUE]", context_key="u")
        assert request.is_continuation
        assert not request.is_auto_start
        assert not BackendRequest(question="hello", context_key="u").is_continuation

    def test_custom_marker(self):
        request = BackendRequest(question="<more>", context_key="u", continue_marker="<more>")
        assert request.is_continuation

    def test_request_requires_context_key(self):
        with pytest.raises(ValidationError):
            BackendRequest(question="hello", context_key="")

    def test_history_from_metadata(self):
        history = [{"role": "user", "content": "hi"}]
        request = BackendRequest(
            question="q", context_key="u", session_metadata={"history": history}
        )
        assert request.history == history
        assert BackendRequest(question="q", context_key="u").history == []

    def test_failure_requires_error_code(self):
        with pytest.raises(ValidationError):
            BackendResponse(success=False)

    def test_ok_and_fail(self):
        ok = BackendResponse.ok("hi there", continue_requested=True)
        assert ok.success and ok.answer == "hi there" and ok.continue_requested

        fail = BackendResponse.fail("NETWORK_001")
        assert not fail.success and fail.error_code == "NETWORK_001"

    def test_from_payload_snake_case(self):
        response = BackendResponse.from_payload(
            {"answer": "hi", "continue_conversation": True}
        )
        assert response == BackendResponse.ok("hi", continue_requested=True)

    def test_from_payload_camel_case(self):
        response = BackendResponse.from_payload(
            {"success": True, "answer": "hi", "continueRequested": True}
        )
        assert response.continue_requested

    def test_from_payload_nested_data(self):
        response = BackendResponse.from_payload(
            {"success": True, "data": {"answer": "nested"}}
        )
        assert response == BackendResponse.ok("nested")

    def test_from_payload_failures(self):
        assert BackendResponse.from_payload(
            {"success": False, "errorCode": "NETWORK_001"}
        ).error_code == "NETWORK_001"
        assert BackendResponse.from_payload(
            {"success": False, "error": {"error_code": "MANAGER_AI_ERROR"}}
        ).error_code == "MANAGER_AI_ERROR"
        assert BackendResponse.from_payload({"success": False}).error_code == "BACKEND_ERROR"

    @given(st.one_of(st.none(), st.integers(), st.text(), st.lists(st.integers())))
    def test_from_payload_rejects_non_objects(self, payload):
        """Property test: anything but a dict is a bad response."""
        response = BackendResponse.from_payload(payload)
        assert response.error_code == "BAD_RESPONSE"

    def test_from_payload_missing_answer(self):
        assert BackendResponse.from_payload({"success": True}).error_code == "BAD_RESPONSE"


class TestChatBackendInterface:
    """Tests for the abstract ChatBackend interface."""

    def test_backend_is_abstract(self):
        with pytest.raises(TypeError):
            ChatBackend()  # type: ignore


class TestScriptedChatBackend:
    """Tests for ScriptedChatBackend."""

    @pytest.mark.asyncio
    async def test_replays_script(self):
        backend = ScriptedChatBackend(script=[
            "plain answer",
            BackendResponse.ok("more", continue_requested=True),
        ])
        request = BackendRequest(question="hi", context_key="u")

        assert await backend.send(request) == BackendResponse.ok("plain answer")
        assert (await backend.send(request)).continue_requested
        assert (await backend.send(request)).error_code == "SCRIPT_EXHAUSTED"
        assert backend.calls == 3

    @pytest.mark.asyncio
    async def test_repeat_last(self):
        backend = ScriptedChatBackend(script=["again"], repeat_last=True)
        request = BackendRequest(question="hi", context_key="u")
        answers = [(await backend.send(request)).answer for _ in range(3)]
        assert answers == ["again", "again", "again"]

    @pytest.mark.asyncio
    async def test_raises_scripted_exception(self):
        backend = ScriptedChatBackend(script=[RuntimeError("boom")])
        with pytest.raises(RuntimeError, match="boom"):
            await backend.send(BackendRequest(question="hi", context_key="u"))

    @pytest.mark.asyncio
    async def test_responder_and_continuation_count(self):
        backend = ScriptedChatBackend(
            responder=lambda r: BackendResponse.ok(f"re: {r.question}")
        )
        await backend.send(BackendRequest(question="hi", context_key="u"))
        response = await backend.send(BackendRequest(question="[CONTINUE]", context_key="u"))

        assert response.answer == "re: [CONTINUE]"
        assert backend.continuation_calls == 1

    def test_requires_script_or_responder(self):
        with pytest.raises(TypeError):
            ScriptedChatBackend()

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        backend = ScriptedChatBackend(script=["x"])
        async with backend:
            pass
        assert backend.closed


def _http_backend(handler) -> HttpChatBackend:
    client = httpx.AsyncClient(
        base_url="https://api.test",
        transport=httpx.MockTransport(handler),
    )
    return HttpChatBackend(base_url="https://api.test", client=client)


class TestHttpChatBackend:
    """Tests for HttpChatBackend with a mock transport."""

    @pytest.mark.asyncio
    async def test_success(self):
        """Test that a successful reply is normalized."""
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"answer": "hi there", "continue_conversation": False})

        backend = _http_backend(handler)
        response = await backend.send(BackendRequest(
            question="hello",
            context_key="user-1",
            session_metadata={"persona_key": "sage"},
        ))

        assert response == BackendResponse.ok("hi there")
        assert seen == [{"question": "hello", "user_key": "user-1", "persona_key": "sage"}]
        await backend.close()

    @pytest.mark.asyncio
    async def test_metadata_cannot_override_question(self):
        """Test that session metadata never replaces the question or identity."""
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"answer": "ok"})

        backend = _http_backend(handler)
        await backend.send(BackendRequest(
            question="[CONTINUE]",
            context_key="user-1",
            session_metadata={"question": "hijacked", "user_key": "someone-else"},
        ))

        assert seen[0]["question"] == "[CONTINUE]"
        assert seen[0]["user_key"] == "user-1"

    @pytest.mark.asyncio
    async def test_server_error_code_wins(self):
        backend = _http_backend(
            lambda r: httpx.Response(400, json={"error_code": "NETWORK_001"})
        )
        response = await backend.send(BackendRequest(question="hello", context_key="u"))
        assert response.error_code == "NETWORK_001"

    @pytest.mark.asyncio
    async def test_status_mapping(self):
        backend = _http_backend(lambda r: httpx.Response(503, text="unavailable"))
        response = await backend.send(BackendRequest(question="hello", context_key="u"))
        assert response.error_code == "SERVER_ERROR"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        backend = _http_backend(handler)
        response = await backend.send(BackendRequest(question="hello", context_key="u"))
        assert response.error_code == "NETWORK_ERROR"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        backend = _http_backend(handler)
        response = await backend.send(BackendRequest(question="hello", context_key="u"))
        assert response.error_code == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_non_json_success_is_bad_response(self):
        backend = _http_backend(lambda r: httpx.Response(200, text="<html>"))
        response = await backend.send(BackendRequest(question="hello", context_key="u"))
        assert response.error_code == "BAD_RESPONSE"

    @pytest.mark.parametrize("status,code", [
        (401, "AUTH_ERROR"),
        (403, "FORBIDDEN"),
        (404, "NOT_FOUND"),
        (500, "SERVER_ERROR"),
        (418, "HTTP_418"),
    ])
    def test_error_code_for_status(self, status, code):
        assert error_code_for_status(status) == code

    def test_error_code_nested_body(self):
        body = {"error": {"error_code": "PERSONA_CHAT_ERROR"}}
        assert error_code_for_status(500, body) == "PERSONA_CHAT_ERROR"


def _completion(content: str) -> SimpleNamespace:
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestOpenAIChatBackend:
    """Tests for OpenAIChatBackend with a mocked client."""

    @pytest.fixture
    def backend(self):
        return OpenAIChatBackend(api_key="fake-key", model="gpt-4o-mini")

    def test_build_messages_injects_history(self, backend):
        request = BackendRequest(
            question="how are you?",
            context_key="u",
            session_metadata={"history": [
                {"role": "user", "content": "hello"},
                {"role": "assistant", "content": "hi there"},
                {"role": "system-error", "content": "ignored"},
            ]},
        )
        messages = backend._build_messages(request)

        assert messages[0]["role"] == "system"
        assert [m["role"] for m in messages[1:]] == ["user", "assistant", "user"]
        assert messages[-1]["content"] == "how are you?"

    def test_build_messages_translates_markers(self, backend):
        continuation = backend._build_messages(
            BackendRequest(question="[CONTINUE]", context_key="u")
        )
        greeting = backend._build_messages(
            BackendRequest(question="[AUTO_START]", context_key="u")
        )
        assert "[CONTINUE]" not in continuation[-1]["content"]
        assert "not replied" in continuation[-1]["content"]
        assert "opened the chat" in greeting[-1]["content"]

    @pytest.mark.asyncio
    async def test_send_parses_json_reply(self, backend):
        backend._client.chat.completions.create = AsyncMock(
            return_value=_completion('{"answer": "hi there", "continue_conversation": true}')
        )
        response = await backend.send(BackendRequest(question="hello", context_key="u"))

        assert response == BackendResponse.ok("hi there", continue_requested=True)
        kwargs = backend._client.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_send_bad_json(self, backend):
        backend._client.chat.completions.create = AsyncMock(
            return_value=_completion("not json")
        )
        response = await backend.send(BackendRequest(question="hello", context_key="u"))
        assert response.error_code == "LLM_BAD_RESPONSE"

    @pytest.mark.asyncio
    async def test_send_empty_answer(self, backend):
        backend._client.chat.completions.create = AsyncMock(
            return_value=_completion('{"answer": ""}')
        )
        response = await backend.send(BackendRequest(question="hello", context_key="u"))
        assert response.error_code == "LLM_BAD_RESPONSE"


class TestBackendFactory:
    """Tests for backend factory function."""

    def test_create_scripted(self):
        backend = create_chat_backend("scripted", script=["hi"])
        assert isinstance(backend, ScriptedChatBackend)
        assert backend.backend_type == "scripted"

    def test_create_http(self):
        backend = create_chat_backend("HTTP", base_url="https://api.test")
        assert isinstance(backend, HttpChatBackend)

    def test_create_openai(self):
        backend = create_chat_backend("openai", api_key="fake-key")
        assert isinstance(backend, OpenAIChatBackend)
        assert backend.model == "gpt-4o-mini"

    def test_missing_required_config(self):
        with pytest.raises(TypeError, match="requires 'base_url'"):
            create_chat_backend("http")
        with pytest.raises(TypeError, match="requires 'api_key'"):
            create_chat_backend("openai")

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unsupported backend"):
            create_chat_backend("carrier-pigeon")

    @given(st.text(min_size=1))
    def test_factory_with_random_names(self, kind: str):
        """Property test: factory only accepts known backend names."""
        if kind.lower() in ("http", "openai", "scripted"):
            return
        with pytest.raises(ValueError):
            create_chat_backend(kind)
