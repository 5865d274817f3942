"""
Source Ranker
=============

Scores and orders search results by estimated reliability and relevance
to a claim, then selects the sources handed to adjudication.

Score = tier_base * 0.4 + relevance * 0.5 + bonus - penalty, clamped to [0, 1].
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta

from claimcheck.domain.entities import (
    TIER_BASE_SCORES,
    EvidenceDocument,
    RankedSource,
    RawClaim,
    Tier,
)

logger = logging.getLogger(__name__)

TIER1_DOMAINS: tuple[str, ...] = (
    "nature.com",
    "science.org",
    "thelancet.com",
    "nejm.org",
    "pubmed.ncbi.nlm.nih.gov",
    "ncbi.nlm.nih.gov",
    "scholar.google.com",
    "jstor.org",
    "britannica.com",
    "who.int",
)

TIER2_DOMAINS: tuple[str, ...] = (
    "apnews.com",
    "reuters.com",
    "nytimes.com",
    "bbc.com",
    "bbc.co.uk",
    "washingtonpost.com",
    "theguardian.com",
    "npr.org",
    "pbs.org",
    "economist.com",
    "scientificamerican.com",
    "nationalgeographic.com",
)

ENCYCLOPEDIA_DOMAINS: tuple[str, ...] = (
    "wikipedia.org",
    "wikimedia.org",
    "fandom.com",
)

SPAM_DOMAINS: tuple[str, ...] = ("content-farm-example.com",)

NUMBER_BONUS = 0.15
DATE_BONUS = 0.10
RECENCY_BONUS = 0.05
SPAM_PENALTY = 0.5
EMPTY_PENALTY = 0.2
RECENCY_WINDOW = timedelta(days=2 * 365)

_WORD = re.compile(r"[\w'-]+", re.UNICODE)


def _matches(domain: str, candidates: Sequence[str]) -> bool:
    domain = domain.lower()
    return any(domain == d or domain.endswith("." + d) for d in candidates)


def assign_tier(domain: str) -> Tier:
    """Map a domain to its reliability tier."""
    domain = domain.lower().removeprefix("www.")
    if domain.endswith(".edu") or domain.endswith(".gov"):
        return Tier.AUTHORITATIVE
    if _matches(domain, TIER1_DOMAINS):
        return Tier.AUTHORITATIVE
    if _matches(domain, TIER2_DOMAINS):
        return Tier.REFERENCE
    if _matches(domain, ENCYCLOPEDIA_DOMAINS):
        return Tier.USER_EDITABLE
    return Tier.GENERAL_WEB


def _content_words(text: str) -> set[str]:
    return {w.strip("'-") for w in _WORD.findall(text.casefold()) if len(w.strip("'-")) > 3}


def compute_relevance(claim_text: str, snippet: str) -> float:
    """Fraction of the claim's content words present in the snippet."""
    claim_words = _content_words(claim_text)
    if not claim_words:
        return 0.0
    snippet_words = set(_WORD.findall(snippet.casefold()))
    matched = sum(1 for w in claim_words if w in snippet_words)
    return min(matched / len(claim_words), 1.0)


def parse_published(value: str | None) -> datetime | None:
    """Parse an ISO-ish publication date; None if unparseable."""
    if not value:
        return None
    candidate = value.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        try:
            parsed = datetime.strptime(candidate[:10], "%Y-%m-%d")
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class SourceRanker:
    """
    Ranks evidence documents for one claim.

    Selection policy:
    - sort descending by score,
    - if any tier 1/2 candidate exists, the best one is always kept,
    - fill up to ``max_sources`` with the highest remaining scores.
    Zero input documents yield zero sources.
    """

    def __init__(
        self,
        *,
        max_sources: int = 5,
        min_sources: int = 2,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        if max_sources < 1:
            raise ValueError("max_sources must be at least 1")
        self._max_sources = max_sources
        self._min_sources = min(min_sources, max_sources)
        self._now = now

    @property
    def max_sources(self) -> int:
        return self._max_sources

    def score(self, claim: RawClaim, document: EvidenceDocument) -> RankedSource:
        """Score a single document against a claim."""
        tier = assign_tier(document.domain)
        relevance = compute_relevance(claim.original_text, document.snippet)

        bonus = 0.0
        if claim.numbers and claim.numbers in document.snippet:
            bonus += NUMBER_BONUS
        if claim.dates and claim.dates in document.snippet:
            bonus += DATE_BONUS
        published = parse_published(document.date_published)
        if published is not None and published > self._now() - RECENCY_WINDOW:
            bonus += RECENCY_BONUS

        penalty = 0.0
        if _matches(document.domain.removeprefix("www."), SPAM_DOMAINS):
            penalty += SPAM_PENALTY
        if not document.title.strip() or not document.snippet.strip():
            penalty += EMPTY_PENALTY

        raw = TIER_BASE_SCORES[tier] * 0.4 + relevance * 0.5 + bonus - penalty
        return RankedSource(
            **document.model_dump(),
            tier=int(tier),
            score=round(max(0.0, min(1.0, raw)), 4),
        )

    def rank(self, claim: RawClaim, documents: Sequence[EvidenceDocument]) -> list[RankedSource]:
        """
        Score, order and select sources for a claim.

        Returns:
            At most ``max_sources`` sources, highest score first.
        """
        seen: set[str] = set()
        unique: list[EvidenceDocument] = []
        for doc in documents:
            if doc.url in seen:
                continue
            seen.add(doc.url)
            unique.append(doc)

        scored = sorted((self.score(claim, d) for d in unique), key=lambda s: s.score, reverse=True)
        if not scored:
            return []

        selected: list[RankedSource] = []
        best_trusted = next((s for s in scored if s.tier <= Tier.REFERENCE), None)
        if best_trusted is not None:
            selected.append(best_trusted)

        for source in scored:
            if len(selected) >= self._max_sources:
                break
            if source is not best_trusted:
                selected.append(source)

        if len(selected) < self._min_sources:
            logger.debug(
                f"Only {len(selected)} source(s) available (floor {self._min_sources})"
            )

        selected.sort(key=lambda s: s.score, reverse=True)
        return selected
