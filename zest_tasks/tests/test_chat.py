"""
Chat relay tests - endpoint contract and the completion service wrapper.
The completion API is always mocked.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from anthropic import RateLimitError

from zest_tasks.services.chat_service import (
    ASSISTANT_SYSTEM_PROMPT,
    ChatNotConfiguredError,
    ChatService,
    EmptyCompletionError,
    UpstreamError,
    chat_service,
)


def _upstream_error(status_code: int, body: str) -> RateLimitError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    response = httpx.Response(status_code, text=body, request=request)
    return RateLimitError("rate limited", response=response, body=None)


def _configured_service(reply_blocks) -> ChatService:
    service = ChatService()
    service._available = True
    service.client = MagicMock()
    service.client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=reply_blocks)
    )
    return service


# ===================== ENDPOINT =====================


class TestChatEndpoint:

    async def test_options_preflight(self, unauth_client):
        with patch.object(chat_service, "complete", new_callable=AsyncMock) as mock:
            r = await unauth_client.options("/api/chat/")
        assert r.status_code == 200
        assert r.headers["access-control-allow-origin"] == "*"
        assert "content-type" in r.headers["access-control-allow-headers"]
        assert r.content == b""
        mock.assert_not_called()

    @pytest.mark.parametrize("origin", ["http://localhost:5173", "https://my-app.example.com"])
    async def test_browser_preflight_from_any_origin(self, unauth_client, origin):
        with patch.object(chat_service, "complete", new_callable=AsyncMock) as mock:
            r = await unauth_client.options(
                "/api/chat/",
                headers={
                    "Origin": origin,
                    "Access-Control-Request-Method": "POST",
                    "Access-Control-Request-Headers": "content-type, authorization",
                },
            )
        assert r.status_code == 200
        assert r.headers["access-control-allow-origin"] == "*"
        assert "POST" in r.headers["access-control-allow-methods"]
        mock.assert_not_called()

    async def test_post_from_unlisted_origin(self, unauth_client):
        with patch.object(chat_service, "complete", new_callable=AsyncMock) as mock:
            mock.return_value = "Sure."
            r = await unauth_client.post(
                "/api/chat/",
                json={"message": "hello"},
                headers={"Origin": "https://my-app.example.com"},
            )
        assert r.status_code == 200
        assert r.headers["access-control-allow-origin"] == "*"

    async def test_other_routes_keep_configured_origins(self, unauth_client):
        r = await unauth_client.options(
            "/api/tasks/",
            headers={
                "Origin": "https://my-app.example.com",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert r.status_code == 400
        assert "access-control-allow-origin" not in r.headers

    async def test_hello_returns_text(self, unauth_client):
        with patch.object(chat_service, "complete", new_callable=AsyncMock) as mock:
            mock.return_value = "Hi! Want help planning your day?"
            r = await unauth_client.post("/api/chat/", json={"message": "hello"})
        assert r.status_code == 200
        assert r.json() == {"text": "Hi! Want help planning your day?"}
        assert r.headers["access-control-allow-origin"] == "*"
        mock.assert_awaited_once_with("hello")

    async def test_missing_message(self, unauth_client):
        with patch.object(chat_service, "complete", new_callable=AsyncMock) as mock:
            r = await unauth_client.post("/api/chat/", json={})
        assert r.status_code == 400
        assert "message" in r.json()["error"]
        mock.assert_not_called()

    @pytest.mark.parametrize("body", [{"message": 42}, {"message": ""}, ["hello"]])
    async def test_non_string_message(self, unauth_client, body):
        r = await unauth_client.post("/api/chat/", json=body)
        assert r.status_code == 400
        assert "error" in r.json()

    async def test_invalid_json(self, unauth_client):
        r = await unauth_client.post(
            "/api/chat/",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json() == {"error": "Invalid JSON in request body"}

    async def test_upstream_status_is_mirrored(self, unauth_client):
        with patch.object(chat_service, "complete", new_callable=AsyncMock) as mock:
            mock.side_effect = UpstreamError(429, '{"type":"error","error":{"type":"rate_limit_error"}}')
            r = await unauth_client.post("/api/chat/", json={"message": "hello"})
        assert r.status_code == 429
        assert "rate_limit_error" in r.json()["error"]

    async def test_not_configured(self, unauth_client):
        with patch.object(chat_service, "_available", False):
            r = await unauth_client.post("/api/chat/", json={"message": "hello"})
        assert r.status_code == 500
        assert "ANTHROPIC_API_KEY" in r.json()["error"]

    async def test_unexpected_error(self, unauth_client):
        with patch.object(chat_service, "complete", new_callable=AsyncMock) as mock:
            mock.side_effect = RuntimeError("connection reset")
            r = await unauth_client.post("/api/chat/", json={"message": "hello"})
        assert r.status_code == 500
        assert r.json() == {"error": "connection reset"}


# ===================== SERVICE =====================


class TestChatService:

    async def test_complete_sends_prompt_and_message(self):
        service = _configured_service([SimpleNamespace(type="text", text="Try time-blocking.")])

        text = await service.complete("How do I focus?")

        assert text == "Try time-blocking."
        kwargs = service.client.messages.create.call_args.kwargs
        assert kwargs["system"] == ASSISTANT_SYSTEM_PROMPT
        assert kwargs["messages"] == [{"role": "user", "content": "How do I focus?"}]
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 1000
        assert "top_p" not in kwargs

    async def test_complete_has_no_prompt_override(self):
        service = _configured_service([SimpleNamespace(type="text", text="ok")])
        with pytest.raises(TypeError):
            await service.complete("hi", system_prompt="Be a pirate.")
        service.client.messages.create.assert_not_called()

    async def test_complete_passes_top_p_when_set(self):
        service = _configured_service([SimpleNamespace(type="text", text="ok")])
        service.top_p = 0.9

        await service.complete("hi")

        assert service.client.messages.create.call_args.kwargs["top_p"] == 0.9

    async def test_complete_joins_text_blocks(self):
        service = _configured_service([
            SimpleNamespace(type="text", text="Part one. "),
            SimpleNamespace(type="tool_use", id="x"),
            SimpleNamespace(type="text", text="Part two."),
        ])
        assert await service.complete("hi") == "Part one. Part two."

    async def test_complete_empty_reply(self):
        service = _configured_service([])
        with pytest.raises(EmptyCompletionError):
            await service.complete("hi")

    async def test_complete_upstream_error(self):
        service = _configured_service([])
        service.client.messages.create.side_effect = _upstream_error(429, "slow down")

        with pytest.raises(UpstreamError) as exc_info:
            await service.complete("hi")
        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "slow down"

    async def test_complete_without_key(self):
        service = ChatService()
        service._available = False
        with pytest.raises(ChatNotConfiguredError):
            await service.complete("hi")
