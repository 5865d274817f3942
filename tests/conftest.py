"""
Pytest Fixtures
===============

Shared fixtures for all test modules.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from claimcheck.adapters.outbound.cache_memory import InMemoryCacheAdapter
from claimcheck.application.analyze_claims import PipelineOrchestrator
from claimcheck.domain.entities import EvidenceDocument, RawClaim
from claimcheck.domain.prompts import EXTRACTION_SYSTEM, REWRITE_SYSTEM, VERDICT_SYSTEM
from claimcheck.domain.services.claim_extractor import ClaimExtractor
from claimcheck.domain.services.reasoning_gateway import ReasoningGateway
from claimcheck.domain.services.result_cache import ResultCache
from claimcheck.domain.services.rewrite_generator import RewriteGenerator
from claimcheck.domain.services.source_ranker import SourceRanker
from claimcheck.domain.services.verdict_adjudicator import VerdictAdjudicator
from claimcheck.ports.evidence_provider import EvidenceProvider
from claimcheck.ports.llm_provider import LLMMessage, LLMProvider, LLMResponse

TOWER_SENTENCE = "The Eiffel Tower is 330 metres tall."
COFFEE_SENTENCE = "All scientists agree coffee is the healthiest drink."
SAMPLE_TEXT = f"{TOWER_SENTENCE} {COFFEE_SENTENCE}"

Reply = str | BaseException | Callable[[str], str]


# -----------------------------------------------------------------------------
# Test doubles
# -----------------------------------------------------------------------------


class RoutingLLM(LLMProvider):
    """
    Fake backend answering by pipeline stage.

    The stage is recognised from the system prompt; each reply is either a
    fixed string, an exception to raise, or a function of the user prompt.
    """

    def __init__(
        self,
        name: str = "fake-model",
        *,
        extraction: Reply = '{"claims": []}',
        verdict: Reply = '{"verdict": "unclear", "explanation": "", "source_ids": []}',
        rewrite: Reply = '{"rewrites": []}',
        healthy: bool = True,
    ) -> None:
        self._name = name
        self.replies: dict[str, Reply] = {
            "extraction": extraction,
            "verdict": verdict,
            "rewrite": rewrite,
        }
        self.healthy = healthy
        self.calls: dict[str, list[str]] = {"extraction": [], "verdict": [], "rewrite": []}

    @property
    def model_name(self) -> str:
        return self._name

    @staticmethod
    def _stage(messages: list[LLMMessage]) -> str:
        system = messages[0].content if messages and messages[0].role == "system" else ""
        return {
            EXTRACTION_SYSTEM: "extraction",
            VERDICT_SYSTEM: "verdict",
            REWRITE_SYSTEM: "rewrite",
        }.get(system, "extraction")

    async def complete(
        self,
        messages: list[LLMMessage],
        *,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        stage = self._stage(messages)
        prompt = messages[-1].content
        self.calls[stage].append(prompt)

        reply = self.replies[stage]
        if isinstance(reply, BaseException):
            raise reply
        if callable(reply):
            reply = reply(prompt)
        return LLMResponse(content=reply, model=self._name)

    async def health_check(self) -> bool:
        return self.healthy


class FakeEvidenceProvider(EvidenceProvider):
    """Returns canned documents per query; a callable may raise instead."""

    def __init__(
        self,
        documents: list[EvidenceDocument] | Callable[[str], Any] | None = None,
        *,
        timeout_budget: float | None = None,
    ) -> None:
        self._documents = documents if documents is not None else []
        self._timeout_budget = timeout_budget
        self.queries: list[str] = []

    @property
    def source_name(self) -> str:
        return "Fake"

    @property
    def timeout_budget_seconds(self) -> float | None:
        return self._timeout_budget

    async def search(self, query: str) -> list[EvidenceDocument]:
        self.queries.append(query)
        if callable(self._documents):
            result = self._documents(query)
            if hasattr(result, "__await__"):
                result = await result
            return result
        return list(self._documents)


def extraction_reply(text: str, *sentences: str) -> str:
    """Model-style extraction JSON locating each sentence in ``text``."""
    claims = []
    for sentence in sentences:
        start = text.index(sentence)
        claims.append(
            {
                "subject": sentence.split()[1],
                "predicate": "is",
                "numbers": None,
                "dates": None,
                "original_text": sentence,
                "span_start": start,
                "span_end": start + len(sentence),
            }
        )
    return json.dumps({"claims": claims})


# -----------------------------------------------------------------------------
# Domain fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT


@pytest.fixture
def tower_claim() -> RawClaim:
    return RawClaim(
        subject="Eiffel Tower",
        predicate="is 330 metres tall",
        numbers="330",
        original_text=TOWER_SENTENCE,
        span_start=0,
        span_end=len(TOWER_SENTENCE),
    )


@pytest.fixture
def coffee_claim() -> RawClaim:
    start = SAMPLE_TEXT.index(COFFEE_SENTENCE)
    return RawClaim(
        subject="scientists",
        predicate="agree coffee is the healthiest drink",
        original_text=COFFEE_SENTENCE,
        span_start=start,
        span_end=start + len(COFFEE_SENTENCE),
    )


@pytest.fixture
def tower_documents() -> list[EvidenceDocument]:
    return [
        EvidenceDocument(
            title="Eiffel Tower | History, Height, & Facts",
            url="https://www.britannica.com/topic/Eiffel-Tower-Paris-France",
            snippet="The Eiffel Tower is 330 metres tall and was completed in 1889.",
            domain="britannica.com",
            date_published="2024-03-01",
        ),
        EvidenceDocument(
            title="Eiffel Tower",
            url="https://en.wikipedia.org/wiki/Eiffel_Tower",
            snippet="The tower is 330 metres tall, about the same height as an 81-storey building.",
            domain="en.wikipedia.org",
        ),
        EvidenceDocument(
            title="Visiting Paris",
            url="https://travel.example.com/paris",
            snippet="Tips for visiting Paris landmarks.",
            domain="travel.example.com",
        ),
    ]


# -----------------------------------------------------------------------------
# Service fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def memory_cache() -> InMemoryCacheAdapter:
    return InMemoryCacheAdapter(max_entries=100)


@pytest.fixture
def result_cache(memory_cache: InMemoryCacheAdapter) -> ResultCache:
    return ResultCache(memory_cache)


@pytest.fixture
def make_gateway() -> Callable[..., ReasoningGateway]:
    """Factory for a gateway that never really sleeps between rounds."""

    def factory(*backends: LLMProvider, retry_rounds: int = 1, **kwargs: Any) -> ReasoningGateway:
        return ReasoningGateway(
            list(backends),
            retry_rounds=retry_rounds,
            base_delay_seconds=0.0,
            sleep=AsyncMock(),
            **kwargs,
        )

    return factory


@pytest.fixture
def make_orchestrator(
    make_gateway: Callable[..., ReasoningGateway],
    result_cache: ResultCache,
) -> Callable[..., PipelineOrchestrator]:
    """Factory wiring real domain services around a fake LLM and evidence source."""

    def factory(
        llm: RoutingLLM,
        evidence: EvidenceProvider,
        **kwargs: Any,
    ) -> PipelineOrchestrator:
        gateway = make_gateway(llm)
        return PipelineOrchestrator(
            extractor=ClaimExtractor(gateway),
            evidence=evidence,
            ranker=SourceRanker(),
            adjudicator=VerdictAdjudicator(gateway),
            rewriter=RewriteGenerator(gateway),
            cache=result_cache,
            **kwargs,
        )

    return factory


@pytest.fixture
def routing_llm_factory() -> type[RoutingLLM]:
    return RoutingLLM


@pytest.fixture
def evidence_factory() -> type[FakeEvidenceProvider]:
    return FakeEvidenceProvider


@pytest.fixture
def extraction_json() -> Callable[..., str]:
    return extraction_reply
