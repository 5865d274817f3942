"""Unit tests for claim extraction and span location."""

from __future__ import annotations

import json

import pytest

from claimcheck.domain.errors import ParseError, UpstreamUnavailable
from claimcheck.domain.services.claim_extractor import ClaimExtractor, locate_span

TEXT = "The Eiffel Tower is 330 metres tall. It was completed in 1889!  Paris loves it."


class TestLocateSpan:
    """Span re-derivation strategies."""

    def test_exact_match(self):
        span = locate_span(TEXT, "It was completed in 1889!")

        assert span is not None
        assert TEXT[span.start : span.end] == "It was completed in 1889!"

    def test_case_and_whitespace_tolerant_match(self):
        span = locate_span(TEXT, "it was   COMPLETED in 1889!")

        assert span is not None
        assert TEXT[span.start : span.end] == "It was completed in 1889!"

    def test_prefix_match_extends_to_sentence_end(self):
        # Model paraphrased the tail of the sentence
        text = (
            "Researchers at the university found that the new battery design lasts "
            "twice as long as lithium cells. Other text follows."
        )
        claim = (
            "Researchers at the university found that the new battery design lasts "
            "three times as long as older cells."
        )

        span = locate_span(text, claim)

        assert span is not None
        assert text[span.start : span.end].endswith("lithium cells.")

    def test_unlocatable_returns_none(self):
        assert locate_span(TEXT, "The Moon is made of cheese.") is None

    def test_hint_selects_later_occurrence(self):
        text = "Paris is big. London is big. Paris is big."
        second = text.rindex("Paris is big.")

        span = locate_span(text, "Paris is big.", hint=second)

        assert span is not None
        assert span.start == second

    def test_empty_inputs(self):
        assert locate_span("", "x") is None
        assert locate_span(TEXT, "   ") is None


class TestClaimExtractor:
    """ClaimExtractor behaviour over a fake backend."""

    @pytest.mark.asyncio
    async def test_spans_are_rederived_from_text(self, routing_llm_factory, make_gateway):
        reply = json.dumps(
            {
                "claims": [
                    # Model offsets are wrong; the sentence is still found
                    {"original_text": "It was completed in 1889!", "span_start": 0, "span_end": 5},
                    {"original_text": "The Eiffel Tower is 330 metres tall."},
                ]
            }
        )
        llm = routing_llm_factory(extraction=reply)
        extractor = ClaimExtractor(make_gateway(llm))

        claims = await extractor.extract(TEXT, 10)

        assert [c.original_text for c in claims] == [
            "It was completed in 1889!",
            "The Eiffel Tower is 330 metres tall.",
        ]
        for claim in claims:
            assert TEXT[claim.span_start : claim.span_end] == claim.original_text

    @pytest.mark.asyncio
    async def test_unlocatable_claim_keeps_zero_length_span(
        self, routing_llm_factory, make_gateway
    ):
        reply = json.dumps({"claims": [{"original_text": "The Moon is made of cheese."}]})
        extractor = ClaimExtractor(make_gateway(routing_llm_factory(extraction=reply)))

        claims = await extractor.extract(TEXT, 10)

        assert len(claims) == 1
        assert claims[0].span.is_empty
        assert claims[0].original_text == "The Moon is made of cheese."

    @pytest.mark.asyncio
    async def test_falls_back_to_reported_offsets_for_display_text(
        self, routing_llm_factory, make_gateway
    ):
        start = TEXT.index("Paris loves it.")
        reply = json.dumps(
            {"claims": [{"span_start": start, "span_end": start + len("Paris loves it.")}]}
        )
        extractor = ClaimExtractor(make_gateway(routing_llm_factory(extraction=reply)))

        claims = await extractor.extract(TEXT, 10)

        assert claims[0].original_text == "Paris loves it."
        assert claims[0].span_start == start

    @pytest.mark.asyncio
    async def test_truncates_to_max_claims(self, routing_llm_factory, make_gateway):
        reply = json.dumps(
            {
                "claims": [
                    {"original_text": "The Eiffel Tower is 330 metres tall."},
                    {"original_text": "It was completed in 1889!"},
                    {"original_text": "Paris loves it."},
                ]
            }
        )
        llm = routing_llm_factory(extraction=reply)
        extractor = ClaimExtractor(make_gateway(llm))

        claims = await extractor.extract(TEXT, 2)

        assert len(claims) == 2
        assert "Extract up to 2 factual claims" in llm.calls["extraction"][0]

    @pytest.mark.asyncio
    async def test_limit_is_capped_by_extractor(self, routing_llm_factory, make_gateway):
        llm = routing_llm_factory(extraction='{"claims": []}')
        extractor = ClaimExtractor(make_gateway(llm), max_claims_limit=3)

        await extractor.extract(TEXT, 50)

        assert "Extract up to 3 factual claims" in llm.calls["extraction"][0]

    @pytest.mark.asyncio
    async def test_claims_without_text_are_skipped(self, routing_llm_factory, make_gateway):
        reply = json.dumps({"claims": [{}, {"original_text": "Paris loves it."}]})
        extractor = ClaimExtractor(make_gateway(routing_llm_factory(extraction=reply)))

        claims = await extractor.extract(TEXT, 10)

        assert [c.original_text for c in claims] == ["Paris loves it."]

    @pytest.mark.asyncio
    async def test_blank_text_makes_no_call(self, routing_llm_factory, make_gateway):
        llm = routing_llm_factory()
        extractor = ClaimExtractor(make_gateway(llm))

        assert await extractor.extract("   ", 10) == []
        assert llm.calls["extraction"] == []

    @pytest.mark.asyncio
    async def test_malformed_output_raises_parse_error(self, routing_llm_factory, make_gateway):
        extractor = ClaimExtractor(make_gateway(routing_llm_factory(extraction="no json here")))

        with pytest.raises(ParseError):
            await extractor.extract(TEXT, 10)

    @pytest.mark.asyncio
    async def test_backend_failure_propagates(self, routing_llm_factory, make_gateway):
        llm = routing_llm_factory(extraction=RuntimeError("boom"))
        extractor = ClaimExtractor(make_gateway(llm))

        with pytest.raises(UpstreamUnavailable):
            await extractor.extract(TEXT, 10)
