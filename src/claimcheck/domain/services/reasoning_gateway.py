"""
Reasoning Gateway
=================

Single entry point for every text-generation call in the pipeline.

Policy (defined once, used by extraction, adjudication and rewrite):
1. Try each backend in order with a hard per-call timeout; a timeout or
   backend error advances to the next backend immediately.
2. If a whole pass fails, sleep ``base_delay * 2**attempt`` and repeat,
   up to ``retry_rounds`` passes.
3. If every pass fails, raise UpstreamUnavailable carrying the last error
   seen from each backend.

Rate-limit responses are ordinary backend failures here.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from claimcheck.domain.errors import UpstreamUnavailable
from claimcheck.domain.payloads import parse_payload
from claimcheck.ports.llm_provider import LLMMessage

if TYPE_CHECKING:
    from claimcheck.ports.llm_provider import LLMProvider

logger = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class ReasoningGateway:
    """Retry/fallback wrapper over an ordered list of LLM backends."""

    def __init__(
        self,
        backends: Sequence[LLMProvider],
        *,
        retry_rounds: int = 2,
        base_delay_seconds: float = 1.0,
        timeout_seconds: float = 30.0,
        temperature: float = 0.1,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Initialize the gateway.

        Args:
            backends: Interchangeable backends, in preference order.
            retry_rounds: Number of full passes over all backends.
            base_delay_seconds: Backoff base between passes.
            timeout_seconds: Default hard timeout for a single backend call.
            temperature: Sampling temperature passed to every backend.
            sleep: Awaitable sleep function (injectable for tests).
        """
        if not backends:
            raise ValueError("ReasoningGateway requires at least one backend")
        if retry_rounds < 1:
            raise ValueError("retry_rounds must be at least 1")

        self._backends = list(backends)
        self._retry_rounds = retry_rounds
        self._base_delay = base_delay_seconds
        self._timeout = timeout_seconds
        self._temperature = temperature
        self._sleep = sleep

    @property
    def backend_names(self) -> list[str]:
        return [b.model_name for b in self._backends]

    async def call(
        self,
        prompt: str,
        *,
        system: str | None = None,
        max_tokens: int = 1000,
        timeout: float | None = None,
    ) -> str:
        """
        Run a prompt through the fallback chain.

        Args:
            prompt: User message.
            system: Optional system message.
            max_tokens: Generation budget.
            timeout: Per-call timeout override in seconds.

        Returns:
            Raw text of the first successful backend response.

        Raises:
            UpstreamUnavailable: If every backend failed on every round.
        """
        messages = []
        if system:
            messages.append(LLMMessage(role="system", content=system))
        messages.append(LLMMessage(role="user", content=prompt))

        deadline = timeout or self._timeout
        last_errors: dict[str, str] = {}

        for attempt in range(self._retry_rounds):
            for backend in self._backends:
                name = backend.model_name
                try:
                    response = await asyncio.wait_for(
                        backend.complete(
                            messages,
                            temperature=self._temperature,
                            max_tokens=max_tokens,
                            json_mode=True,
                        ),
                        timeout=deadline,
                    )
                except TimeoutError:
                    last_errors[name] = f"timed out after {deadline:.1f}s"
                    logger.warning(f"Backend {name} timed out after {deadline:.1f}s")
                    continue
                except Exception as e:
                    last_errors[name] = f"{type(e).__name__}: {e}"
                    logger.warning(f"Backend {name} failed: {type(e).__name__}: {e}")
                    continue

                if not response.content.strip():
                    last_errors[name] = "empty response"
                    logger.warning(f"Backend {name} returned an empty response")
                    continue

                if attempt or name != self._backends[0].model_name:
                    logger.info(f"Reasoning call served by fallback backend {name}")
                return response.content

            if attempt < self._retry_rounds - 1:
                delay = self._base_delay * (2**attempt)
                logger.warning(
                    "All %s backends failed (round %s/%s), retrying in %.1fs",
                    len(self._backends),
                    attempt + 1,
                    self._retry_rounds,
                    delay,
                )
                await self._sleep(delay)

        logger.error(f"Reasoning backends exhausted: {last_errors}")
        raise UpstreamUnavailable(
            f"All reasoning backends failed after {self._retry_rounds} round(s)",
            errors=last_errors,
        )

    async def call_json(
        self,
        prompt: str,
        schema: type[PayloadT],
        *,
        system: str | None = None,
        max_tokens: int = 1000,
        timeout: float | None = None,
        list_key: str | None = None,
    ) -> PayloadT:
        """
        Run a prompt and validate the response against a payload schema.

        Raises:
            UpstreamUnavailable: If no backend answered.
            ParseError: If the answer is not valid JSON for ``schema``.
        """
        raw = await self.call(prompt, system=system, max_tokens=max_tokens, timeout=timeout)
        return parse_payload(raw, schema, list_key=list_key)

    async def health_check(self) -> dict[str, bool]:
        """Report health per backend."""
        results = await asyncio.gather(
            *(b.health_check() for b in self._backends), return_exceptions=True
        )
        return {
            b.model_name: r is True for b, r in zip(self._backends, results, strict=True)
        }

    async def close(self) -> None:
        """Close every backend."""
        for backend in self._backends:
            try:
                await backend.close()
            except Exception as e:
                logger.warning(f"Backend {backend.model_name} close failed: {e}")
