"""
OpenAI-Compatible LLM Adapter
=============================

Adapter for OpenAI-compatible chat-completion APIs (Groq, OpenAI, vLLM,
Ollama, ...). One adapter instance serves exactly one model; the gateway
chains several of them for fallback.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from claimcheck.domain.errors import UpstreamError
from claimcheck.ports.llm_provider import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
)

if TYPE_CHECKING:
    from claimcheck.infrastructure.config import LLMSettings

logger = logging.getLogger(__name__)


class LLMProviderError(UpstreamError):
    """Exception raised when LLM inference fails."""

    pass


class OpenAILLMAdapter(LLMProvider):
    """
    Adapter for one model behind an OpenAI-compatible inference API.

    The client's built-in retries are disabled: retry and fallback policy
    belongs to the ReasoningGateway.
    """

    def __init__(
        self,
        settings: LLMSettings,
        model: str,
        *,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """
        Initialize the adapter with configuration.

        Args:
            settings: LLM connection settings.
            model: Model identifier served by this adapter.
            client: Pre-built client (tests); built from settings otherwise.
        """
        self._settings = settings
        self._model = model

        if client is None:
            connection_limits = httpx.Limits(
                max_connections=50,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            )
            timeout_config = httpx.Timeout(
                connect=10.0,
                read=settings.timeout_seconds,
                write=30.0,
                pool=5.0,
            )
            http_client = httpx.AsyncClient(
                limits=connection_limits,
                timeout=timeout_config,
                http2=True,
            )
            client = AsyncOpenAI(
                base_url=settings.base_url,
                api_key=settings.api_key.get_secret_value(),
                timeout=settings.timeout_seconds,
                max_retries=0,
                http_client=http_client,
            )
        self._client = client

    @property
    def model_name(self) -> str:
        """Return the configured model name."""
        return self._model

    async def complete(
        self,
        messages: list[LLMMessage],
        *,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Generate a completion for the given messages.

        Raises:
            LLMProviderError: If inference fails.
        """
        try:
            kwargs: dict[str, object] = {}
            if json_mode:
                kwargs["response_format"] = {"type": "json_object"}

            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": m.role, "content": m.content} for m in messages],  # type: ignore[misc]
                temperature=temperature,
                max_tokens=max_tokens,
                **kwargs,
            )

            if not response.choices:
                raise LLMProviderError(f"{self._model} returned no choices")

            choice = response.choices[0]
            usage = None
            if response.usage:
                usage = {
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }

            return LLMResponse(
                content=choice.message.content or "",
                model=response.model,
                usage=usage,
                finish_reason=choice.finish_reason,
            )

        except LLMProviderError:
            raise
        except APITimeoutError as e:
            logger.warning(f"LLM {self._model} timed out: {e}")
            raise LLMProviderError(f"{self._model} timed out") from e
        except APIConnectionError as e:
            # Callers handle fallback; warning level only
            logger.warning(f"LLM {self._model} not reachable: {e}")
            raise LLMProviderError(f"Failed to connect to LLM: {e}") from e
        except APIStatusError as e:
            logger.error(f"LLM API error ({self._model}): {e.status_code} - {e.message}")
            raise LLMProviderError(f"LLM API error {e.status_code}: {e.message}") from e
        except Exception as e:
            logger.error(f"Unexpected LLM error ({self._model}): {e}")
            raise LLMProviderError(f"Unexpected error: {e}") from e

    async def health_check(self) -> bool:
        """Check if the LLM API is reachable."""
        try:
            await self._client.models.list()
            return True
        except Exception as e:
            logger.warning(f"LLM health check failed for {self._model}: {e}")
            return False

    async def close(self) -> None:
        await self._client.close()


def build_llm_backends(settings: LLMSettings) -> list[OpenAILLMAdapter]:
    """One adapter per configured model, in fallback order."""
    return [OpenAILLMAdapter(settings, model) for model in settings.models]
