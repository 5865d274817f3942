"""Unit tests for source tiering and ranking."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from claimcheck.domain.entities import EvidenceDocument, RawClaim, Tier
from claimcheck.domain.services.source_ranker import (
    SourceRanker,
    assign_tier,
    compute_relevance,
    parse_published,
)

FIXED_NOW = datetime(2025, 1, 1, tzinfo=UTC)


@pytest.fixture
def ranker() -> SourceRanker:
    return SourceRanker(now=lambda: FIXED_NOW)


class TestAssignTier:
    @pytest.mark.parametrize(
        ("domain", "tier"),
        [
            ("nasa.gov", Tier.AUTHORITATIVE),
            ("www.mit.edu", Tier.AUTHORITATIVE),
            ("nature.com", Tier.AUTHORITATIVE),
            ("pubmed.ncbi.nlm.nih.gov", Tier.AUTHORITATIVE),
            ("reuters.com", Tier.REFERENCE),
            ("www.bbc.co.uk", Tier.REFERENCE),
            ("en.wikipedia.org", Tier.USER_EDITABLE),
            ("example.com", Tier.GENERAL_WEB),
            ("notnature.com", Tier.GENERAL_WEB),
        ],
    )
    def test_tiers(self, domain: str, tier: Tier):
        assert assign_tier(domain) is tier


class TestScoringHelpers:
    def test_relevance_counts_content_words(self):
        claim = "The Eiffel Tower is 330 metres tall."

        assert compute_relevance(claim, "Eiffel Tower facts") == 0.5
        assert compute_relevance(claim, "unrelated") == 0.0

    def test_relevance_without_content_words(self):
        assert compute_relevance("It is.", "It is.") == 0.0

    @pytest.mark.parametrize(
        "value",
        ["2024-03-01", "2024-03-01T10:00:00Z", "2024-03-01T10:00:00+02:00", "2024-03-01 extra"],
    )
    def test_parse_published(self, value: str):
        parsed = parse_published(value)

        assert parsed is not None
        assert (parsed.year, parsed.month, parsed.day) == (2024, 3, 1)
        assert parsed.tzinfo is not None

    def test_parse_published_rejects_garbage(self):
        assert parse_published("last Tuesday") is None
        assert parse_published(None) is None


class TestSourceRanker:
    def test_orders_by_score(self, ranker, tower_claim, tower_documents):
        ranked = ranker.rank(tower_claim, tower_documents)

        assert [s.domain for s in ranked] == [
            "britannica.com",
            "en.wikipedia.org",
            "travel.example.com",
        ]
        assert ranked[0].score == 1.0
        assert ranked[0].tier == Tier.AUTHORITATIVE
        assert all(0.0 <= s.score <= 1.0 for s in ranked)

    def test_score_components(self, ranker, tower_claim, tower_documents):
        wikipedia = ranker.score(tower_claim, tower_documents[1])
        travel = ranker.score(tower_claim, tower_documents[2])

        # 0.3 * 0.4 + 0.75 * 0.5 + number bonus
        assert wikipedia.score == pytest.approx(0.645)
        # tier 3 base only
        assert travel.score == pytest.approx(0.16)

    def test_no_documents_no_sources(self, ranker, tower_claim):
        assert ranker.rank(tower_claim, []) == []

    def test_duplicate_urls_are_dropped(self, ranker, tower_claim, tower_documents):
        ranked = ranker.rank(tower_claim, tower_documents + tower_documents[:1])

        assert len(ranked) == 3
        assert len({s.url for s in ranked}) == 3

    def test_caps_at_max_sources(self, tower_claim):
        documents = [
            EvidenceDocument(
                title=f"Page {i}",
                url=f"https://site{i}.example.com/tower",
                snippet="Eiffel Tower",
                domain=f"site{i}.example.com",
            )
            for i in range(8)
        ]

        ranked = SourceRanker(max_sources=5).rank(tower_claim, documents)

        assert len(ranked) == 5

    def test_best_trusted_source_is_always_kept(self, tower_claim):
        strong_general = EvidenceDocument(
            title="Tower trivia",
            url="https://trivia.example.com/tower",
            snippet="The Eiffel Tower is 330 metres tall.",
            domain="trivia.example.com",
        )
        weak_trusted = EvidenceDocument(
            title="Paris news",
            url="https://www.reuters.com/world/europe/paris",
            snippet="City council meets on Tuesday.",
            domain="reuters.com",
        )

        ranked = SourceRanker(max_sources=1).rank(tower_claim, [strong_general, weak_trusted])

        assert [s.domain for s in ranked] == ["reuters.com"]

    def test_spam_and_empty_documents_are_penalised(self, ranker):
        claim = RawClaim(original_text="Coffee improves memory in adults.")
        spam = EvidenceDocument(
            title="Coffee memory",
            url="https://content-farm-example.com/coffee",
            snippet="Coffee improves memory in adults.",
            domain="content-farm-example.com",
        )
        honest = EvidenceDocument(
            title="Coffee memory",
            url="https://blog.example.com/coffee",
            snippet="Coffee improves memory in adults.",
            domain="blog.example.com",
        )
        empty = EvidenceDocument(
            title="",
            url="https://empty.example.com/",
            snippet="Coffee improves memory in adults.",
            domain="empty.example.com",
        )

        assert ranker.score(claim, spam).score < ranker.score(claim, honest).score
        assert ranker.score(claim, empty).score < ranker.score(claim, honest).score

    def test_recent_documents_get_a_bonus(self, ranker):
        claim = RawClaim(original_text="Coffee improves memory in adults.")
        base = {
            "title": "Coffee",
            "url": "https://blog.example.com/coffee",
            "snippet": "Coffee",
            "domain": "blog.example.com",
        }
        recent = EvidenceDocument(**base, date_published="2024-06-01")
        old = EvidenceDocument(**base, date_published="2010-06-01")

        assert ranker.score(claim, recent).score == pytest.approx(
            ranker.score(claim, old).score + 0.05
        )

    def test_max_sources_must_be_positive(self):
        with pytest.raises(ValueError):
            SourceRanker(max_sources=0)
