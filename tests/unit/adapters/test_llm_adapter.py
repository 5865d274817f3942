"""Unit tests for OpenAI LLM adapter."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError, APIStatusError, APITimeoutError

from claimcheck.adapters.outbound.llm_openai import (
    LLMProviderError,
    OpenAILLMAdapter,
    build_llm_backends,
)
from claimcheck.domain.errors import UpstreamError
from claimcheck.ports.llm_provider import LLMMessage, LLMResponse

REQUEST = httpx.Request("POST", "http://localhost:8000/v1/chat/completions")


@pytest.fixture
def mock_settings():
    """Mock LLM settings."""
    settings = MagicMock()
    settings.base_url = "http://localhost:8000/v1"
    settings.api_key = MagicMock()
    settings.api_key.get_secret_value.return_value = "test_key"
    settings.timeout_seconds = 30.0
    settings.models = ["llama-3.3-70b-versatile", "llama-3.1-8b-instant"]
    return settings


@pytest.fixture
def mock_openai_client():
    """Mock OpenAI client."""
    mock_client = MagicMock()
    mock_response = MagicMock()
    mock_choice = MagicMock()
    mock_message = MagicMock()
    mock_message.content = '{"claims": []}'
    mock_choice.message = mock_message
    mock_choice.finish_reason = "stop"
    mock_response.choices = [mock_choice]
    mock_response.model = "llama-3.3-70b-versatile"
    mock_response.usage = MagicMock()
    mock_response.usage.prompt_tokens = 10
    mock_response.usage.completion_tokens = 5
    mock_response.usage.total_tokens = 15
    mock_client.chat.completions.create = AsyncMock(return_value=mock_response)
    # Mock models.list for health check
    mock_client.models = MagicMock()
    mock_client.models.list = AsyncMock(return_value=MagicMock())
    mock_client.close = AsyncMock()
    return mock_client


@pytest.fixture
def llm_adapter(mock_settings, mock_openai_client):
    """LLM adapter with mocked client."""
    return OpenAILLMAdapter(
        mock_settings, "llama-3.3-70b-versatile", client=mock_openai_client
    )


class TestOpenAILLMAdapter:
    """Test OpenAILLMAdapter."""

    def test_initialization(self, llm_adapter: OpenAILLMAdapter):
        """Test adapter initialization."""
        assert llm_adapter.model_name == "llama-3.3-70b-versatile"

    @pytest.mark.asyncio
    async def test_complete(self, llm_adapter: OpenAILLMAdapter, mock_openai_client):
        """Test completing a message."""
        messages = [
            LLMMessage(role="system", content="Extract claims."),
            LLMMessage(role="user", content="Paris is in France."),
        ]

        response = await llm_adapter.complete(messages, temperature=0.1, max_tokens=256)

        assert isinstance(response, LLMResponse)
        assert response.content == '{"claims": []}'
        assert response.usage == {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}
        assert response.finish_reason == "stop"

        kwargs = mock_openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "llama-3.3-70b-versatile"
        assert kwargs["messages"][0] == {"role": "system", "content": "Extract claims."}
        assert kwargs["temperature"] == 0.1
        assert kwargs["max_tokens"] == 256
        assert "response_format" not in kwargs

    @pytest.mark.asyncio
    async def test_json_mode_requests_json_object(self, llm_adapter, mock_openai_client):
        await llm_adapter.complete([LLMMessage(role="user", content="x")], json_mode=True)

        kwargs = mock_openai_client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}

    @pytest.mark.asyncio
    async def test_missing_content_becomes_empty_string(self, llm_adapter, mock_openai_client):
        response = mock_openai_client.chat.completions.create.return_value
        response.choices[0].message.content = None
        response.usage = None

        result = await llm_adapter.complete([LLMMessage(role="user", content="x")])

        assert result.content == ""
        assert result.usage is None

    @pytest.mark.asyncio
    async def test_no_choices(self, llm_adapter, mock_openai_client):
        mock_openai_client.chat.completions.create.return_value.choices = []

        with pytest.raises(LLMProviderError, match="no choices"):
            await llm_adapter.complete([LLMMessage(role="user", content="x")])

    @pytest.mark.asyncio
    async def test_health_check(self, llm_adapter: OpenAILLMAdapter, mock_openai_client):
        """Test health check."""
        assert await llm_adapter.health_check() is True

        mock_openai_client.models.list.side_effect = RuntimeError("down")
        assert await llm_adapter.health_check() is False

    @pytest.mark.asyncio
    async def test_close(self, llm_adapter, mock_openai_client):
        await llm_adapter.close()

        mock_openai_client.close.assert_awaited_once()

    def test_build_backends_preserves_order(self, mock_settings):
        backends = build_llm_backends(mock_settings)

        assert [b.model_name for b in backends] == mock_settings.models


class TestLLMErrorMapping:
    """Client errors surface as upstream failures."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            APITimeoutError(request=REQUEST),
            APIConnectionError(request=REQUEST),
            APIStatusError(
                "rate limited",
                response=httpx.Response(429, request=REQUEST),
                body=None,
            ),
            RuntimeError("boom"),
        ],
    )
    async def test_errors_are_wrapped(self, llm_adapter, mock_openai_client, error):
        mock_openai_client.chat.completions.create.side_effect = error

        with pytest.raises(LLMProviderError) as exc_info:
            await llm_adapter.complete([LLMMessage(role="user", content="x")])

        assert isinstance(exc_info.value, UpstreamError)
        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_status_code_in_message(self, llm_adapter, mock_openai_client):
        mock_openai_client.chat.completions.create.side_effect = APIStatusError(
            "server exploded",
            response=httpx.Response(503, request=REQUEST),
            body=None,
        )

        with pytest.raises(LLMProviderError, match="503"):
            await llm_adapter.complete([LLMMessage(role="user", content="x")])
