"""Unit tests for document risk review and citation lookup."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from claimcheck.application.format_citation import CitationLookupService
from claimcheck.application.review_document import ReviewDocumentUseCase
from claimcheck.domain.entities import CitationFormat, CitationStyle, RawClaim, SourceMetadata
from claimcheck.domain.errors import InputValidationError
from claimcheck.domain.services.risk_scorer import RiskLabel
from claimcheck.ports.collaborators import HistoryEntry

DOCUMENT = (
    "Paris is the capital of France. "
    "According to a 2020 survey, the average user is always online 95% of the day. "
    "It is the largest of 3 towers."
)


def claims_for(text: str, *sentences: str) -> list[RawClaim]:
    claims = []
    for sentence in sentences:
        start = text.index(sentence)
        claims.append(
            RawClaim(original_text=sentence, span_start=start, span_end=start + len(sentence))
        )
    return claims


@pytest.fixture
def extractor() -> MagicMock:
    extractor = MagicMock()
    extractor.extract = AsyncMock(
        return_value=claims_for(
            DOCUMENT,
            "Paris is the capital of France.",
            "According to a 2020 survey, the average user is always online 95% of the day.",
            "It is the largest of 3 towers.",
        )
    )
    return extractor


class TestReviewDocumentUseCase:
    @pytest.mark.asyncio
    async def test_sorted_by_descending_risk(self, extractor):
        use_case = ReviewDocumentUseCase(extractor)

        result = await use_case.execute(DOCUMENT)

        assert result.total_claims_found == 3
        assert [c.summary_verdict for c in result.high_risk_claims] == [
            RiskLabel.LIKELY_OVERSTATED,
            RiskLabel.NEEDS_REVIEW,
            RiskLabel.LIKELY_OK,
        ]
        scores = [c.risk_score for c in result.high_risk_claims]
        assert scores == sorted(scores, reverse=True)
        assert result.metadata.words_processed == len(DOCUMENT.split())
        assert result.metadata.claims_scored == 3

    @pytest.mark.asyncio
    async def test_keeps_top_n(self, extractor):
        result = await ReviewDocumentUseCase(extractor).execute(DOCUMENT, max_risk_claims=1)

        assert len(result.high_risk_claims) == 1
        assert result.total_claims_found == 3

    @pytest.mark.asyncio
    async def test_requests_extraction_limit(self, extractor):
        await ReviewDocumentUseCase(extractor, extraction_claims=100).execute(DOCUMENT)

        extractor.extract.assert_awaited_once_with(DOCUMENT, 100)

    @pytest.mark.asyncio
    async def test_spans_point_into_document(self, extractor):
        result = await ReviewDocumentUseCase(extractor).execute(DOCUMENT)

        for claim in result.high_risk_claims:
            assert DOCUMENT[claim.span.start : claim.span.end] == claim.original_text

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("text", "max_risk_claims"),
        [("", 5), ("x" * 12001, 5), (DOCUMENT, 0), (DOCUMENT, 31), ("<script>x</script>", 5)],
    )
    async def test_invalid_input(self, extractor, text, max_risk_claims):
        with pytest.raises(InputValidationError):
            await ReviewDocumentUseCase(extractor).execute(text, max_risk_claims=max_risk_claims)
        extractor.extract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_history_hand_off(self, extractor):
        history = AsyncMock()
        use_case = ReviewDocumentUseCase(extractor, history=history)

        await use_case.execute(DOCUMENT, user_id="user-9")
        await use_case.drain()

        entry = history.record.await_args.args[0]
        assert entry.type == "review"
        assert entry.user_id == "user-9"

    @pytest.mark.asyncio
    async def test_record_history_without_recorder_is_a_no_op(self, extractor):
        entry = HistoryEntry(
            user_id=None, type="review", input_snippet="x", result_json="{}", claim_count=0
        )

        assert await ReviewDocumentUseCase(extractor)._record_history(entry) is None


class TestCitationLookupService:
    @pytest.fixture
    def fetcher(self) -> MagicMock:
        fetcher = MagicMock()
        fetcher.fetch = AsyncMock(
            return_value=SourceMetadata(
                title="Apollo 11",
                url="https://www.nasa.gov/apollo-11",
                author="Jane Doe",
                publisher="NASA",
                date="2019-07-16",
                domain="nasa.gov",
            )
        )
        return fetcher

    @pytest.mark.asyncio
    async def test_formats_both_forms(self, fetcher, result_cache):
        service = CitationLookupService(fetcher, result_cache)

        formatted = await service.format_from_url(
            "https://www.nasa.gov/apollo-11", CitationStyle.APA
        )

        assert formatted.citation_inline == "(Doe, 2019)"
        assert formatted.citation_bibliography.startswith("Jane Doe. (2019). Apollo 11.")
        assert formatted.metadata_used.publisher == "NASA"

    @pytest.mark.asyncio
    async def test_single_form_leaves_other_empty(self, fetcher, result_cache):
        service = CitationLookupService(fetcher, result_cache)

        inline_only = await service.format_from_url(
            "https://www.nasa.gov/apollo-11", CitationStyle.MLA, CitationFormat.INLINE
        )

        assert inline_only.citation_inline == "(Doe)"
        assert inline_only.citation_bibliography == ""

    @pytest.mark.asyncio
    async def test_metadata_is_cached(self, fetcher, result_cache):
        service = CitationLookupService(fetcher, result_cache)

        await service.format_from_url("https://www.nasa.gov/apollo-11", CitationStyle.MLA)
        await service.format_from_url("https://www.nasa.gov/apollo-11", CitationStyle.CHICAGO)

        fetcher.fetch.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["not a url", "ftp://example.com/file", "/relative/path"])
    async def test_rejects_non_http_urls(self, fetcher, result_cache, url):
        service = CitationLookupService(fetcher, result_cache)

        with pytest.raises(InputValidationError):
            await service.format_from_url(url, CitationStyle.MLA)
        fetcher.fetch.assert_not_awaited()
