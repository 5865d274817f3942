"""Unit tests for verdict adjudication and rewrite generation."""

from __future__ import annotations

import json

import pytest

from claimcheck.domain.entities import Verdict
from claimcheck.domain.errors import ParseError
from claimcheck.domain.services.rewrite_generator import RewriteGenerator
from claimcheck.domain.services.source_ranker import SourceRanker
from claimcheck.domain.services.verdict_adjudicator import (
    NO_EVIDENCE_EXPLANATION,
    VerdictAdjudicator,
)


@pytest.fixture
def ranked(tower_claim, tower_documents):
    return SourceRanker().rank(tower_claim, tower_documents)


class TestVerdictAdjudicator:
    @pytest.mark.asyncio
    async def test_no_sources_is_unclear_without_model_call(
        self, routing_llm_factory, make_gateway, tower_claim
    ):
        llm = routing_llm_factory()
        adjudicator = VerdictAdjudicator(make_gateway(llm))

        result = await adjudicator.adjudicate(tower_claim, [])

        assert result.verdict is Verdict.UNCLEAR
        assert result.explanation == NO_EVIDENCE_EXPLANATION
        assert llm.calls["verdict"] == []

    @pytest.mark.asyncio
    async def test_verdict_and_known_source_ids(
        self, routing_llm_factory, make_gateway, tower_claim, ranked
    ):
        def reply(prompt: str) -> str:
            return json.dumps(
                {
                    "verdict": "supported",
                    "explanation": "Britannica confirms the height.",
                    "source_ids": [ranked[0].id, "made-up-id"],
                }
            )

        llm = routing_llm_factory(verdict=reply)
        adjudicator = VerdictAdjudicator(make_gateway(llm))

        result = await adjudicator.adjudicate(tower_claim, ranked)

        assert result.verdict is Verdict.SUPPORTED
        assert result.explanation == "Britannica confirms the height."
        assert result.source_ids == [ranked[0].id]

    @pytest.mark.asyncio
    async def test_prompt_contains_claim_and_capped_sources(
        self, routing_llm_factory, make_gateway, tower_claim, ranked
    ):
        llm = routing_llm_factory(verdict='{"verdict": "unclear"}')
        adjudicator = VerdictAdjudicator(make_gateway(llm), max_sources=1)

        await adjudicator.adjudicate(tower_claim, ranked)

        prompt = llm.calls["verdict"][0]
        assert tower_claim.original_text in prompt
        assert ranked[0].id in prompt
        assert ranked[1].id not in prompt

    @pytest.mark.asyncio
    async def test_blank_explanation_gets_default(
        self, routing_llm_factory, make_gateway, tower_claim, ranked
    ):
        llm = routing_llm_factory(verdict='{"verdict": "disputed", "explanation": "  "}')

        result = await VerdictAdjudicator(make_gateway(llm)).adjudicate(tower_claim, ranked)

        assert result.verdict is Verdict.DISPUTED
        assert result.explanation.startswith("Verdict based on")

    @pytest.mark.asyncio
    async def test_malformed_verdict_raises(
        self, routing_llm_factory, make_gateway, tower_claim, ranked
    ):
        llm = routing_llm_factory(verdict='{"verdict": "probably"}')

        with pytest.raises(ParseError):
            await VerdictAdjudicator(make_gateway(llm)).adjudicate(tower_claim, ranked)


class TestRewriteGenerator:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("verdict", [Verdict.SUPPORTED, Verdict.UNCLEAR])
    async def test_no_rewrite_for_other_verdicts(
        self, routing_llm_factory, make_gateway, ranked, verdict
    ):
        llm = routing_llm_factory(rewrite='{"rewrites": ["Something else."]}')

        rewrites = await RewriteGenerator(make_gateway(llm)).generate("Text.", verdict, ranked)

        assert rewrites == []
        assert llm.calls["rewrite"] == []

    @pytest.mark.asyncio
    async def test_no_rewrite_without_sources(self, routing_llm_factory, make_gateway):
        llm = routing_llm_factory(rewrite='{"rewrites": ["Something else."]}')

        rewrites = await RewriteGenerator(make_gateway(llm)).generate(
            "Text.", Verdict.OVERSTATED, []
        )

        assert rewrites == []

    @pytest.mark.asyncio
    async def test_dedupes_and_caps_candidates(self, routing_llm_factory, make_gateway, ranked):
        original = "The Eiffel Tower is the tallest building in the world."
        reply = json.dumps(
            {
                "rewrites": [
                    {"text": original, "confidence": 0.9},
                    {"text": "The Eiffel Tower is 330 metres tall.", "confidence": 0.85},
                    {"text": "the eiffel tower is 330 metres tall.", "confidence": 0.8},
                    {"text": "The Eiffel Tower was once the tallest structure.", "confidence": 0.6},
                    {"text": "A third candidate.", "confidence": 0.5},
                ]
            }
        )
        llm = routing_llm_factory(rewrite=reply)

        rewrites = await RewriteGenerator(make_gateway(llm)).generate(
            original, Verdict.OVERSTATED, ranked
        )

        assert [r.text for r in rewrites] == [
            "The Eiffel Tower is 330 metres tall.",
            "The Eiffel Tower was once the tallest structure.",
        ]
        assert rewrites[0].confidence == 0.85
