"""
LLMProvider Port
================

Abstract interface for one text-generation backend.
ReasoningGateway composes several of these into a fallback chain.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class LLMResponse:
    """Response from an LLM inference call."""

    content: str
    model: str
    usage: dict[str, int] | None = None  # tokens: prompt, completion, total
    finish_reason: str | None = None
    raw_response: dict[str, Any] | None = None


@dataclass(frozen=True, slots=True)
class LLMMessage:
    """A single message in a conversation."""

    role: str  # "system", "user", "assistant"
    content: str


class LLMProvider(ABC):
    """
    Port for a single LLM inference backend.

    Implementations might wrap:
    - OpenAI API
    - Groq / vLLM / Ollama via the OpenAI-compatible protocol
    - Any other chat-completion service
    """

    @abstractmethod
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

        Args:
            messages: Conversation history.
            temperature: Sampling temperature (0.0 = deterministic).
            max_tokens: Maximum tokens to generate.
            json_mode: Ask the backend to constrain output to a JSON object.

        Returns:
            LLM response with generated content.

        Raises:
            LLMProviderError: If inference fails.
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the LLM provider is operational."""
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Return the name/ID of the model being used."""
        ...

    async def close(self) -> None:
        """Release network resources. Default is a no-op."""
        return None
