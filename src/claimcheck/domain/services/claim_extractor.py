"""
LLM-Based Claim Extractor
=========================

Segments input text into discrete factual assertions with location spans.

Model-reported offsets are never trusted verbatim. Each claim's span is
re-derived from the request text by, in order:
(a) exact substring match,
(b) case-insensitive, whitespace-tolerant match,
(c) prefix match on the first 60 characters, extended to the next
    sentence terminator,
(d) a zero-length span, keeping the model's text as display text.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from claimcheck.domain.entities import RawClaim, Span
from claimcheck.domain.payloads import ExtractedClaimPayload, ExtractionPayload
from claimcheck.domain.prompts import EXTRACTION_SYSTEM, build_extraction_prompt

if TYPE_CHECKING:
    from claimcheck.domain.services.reasoning_gateway import ReasoningGateway

logger = logging.getLogger(__name__)

PREFIX_MATCH_CHARS = 60

_SENTENCE_END = re.compile(r"[.!?]+(?=[\"'\)\]]*(?:\s|$))")


def _flexible_pattern(fragment: str) -> re.Pattern[str] | None:
    tokens = fragment.split()
    if not tokens:
        return None
    return re.compile(r"\s+".join(re.escape(t) for t in tokens), re.IGNORECASE)


def locate_span(text: str, claim_text: str, hint: int = 0) -> Span | None:
    """
    Find the span of ``claim_text`` inside ``text``.

    Args:
        text: Full request text.
        claim_text: Sentence reported by the model.
        hint: Preferred search start (e.g. a model-reported offset); used to
            pick the right occurrence when a sentence repeats.

    Returns:
        The located span, or None when every strategy fails.
    """
    needle = claim_text.strip()
    if not needle or not text:
        return None
    hint = hint if 0 <= hint < len(text) else 0

    # (a) exact
    idx = text.find(needle, hint)
    if idx == -1:
        idx = text.find(needle)
    if idx != -1:
        return Span(start=idx, end=idx + len(needle))

    # (b) case-insensitive, tolerant to whitespace differences
    pattern = _flexible_pattern(needle)
    if pattern is not None:
        match = pattern.search(text, hint) or pattern.search(text)
        if match:
            return Span(start=match.start(), end=match.end())

    # (c) prefix, extended forward to the end of the sentence
    prefix_pattern = _flexible_pattern(needle[:PREFIX_MATCH_CHARS])
    if prefix_pattern is not None:
        match = prefix_pattern.search(text, hint) or prefix_pattern.search(text)
        if match:
            terminator = _SENTENCE_END.search(text, match.end())
            end = terminator.end() if terminator else len(text.rstrip())
            if end > match.start():
                return Span(start=match.start(), end=end)

    # (d) caller falls back to a zero-length span
    return None


class ClaimExtractor:
    """
    LLM-based claim extraction service.

    Malformed model output raises ParseError and an exhausted gateway raises
    UpstreamUnavailable; both abort the whole request upstream of here.
    Individual claims that cannot be located are still returned.
    """

    def __init__(
        self,
        gateway: ReasoningGateway,
        *,
        max_claims_limit: int = 20,
        max_tokens: int = 1000,
    ) -> None:
        """
        Initialize the extractor.

        Args:
            gateway: Reasoning gateway used for the extraction prompt.
            max_claims_limit: Upper bound applied to every request.
            max_tokens: Generation budget for the extraction call.
        """
        self._gateway = gateway
        self._limit = max_claims_limit
        self._max_tokens = max_tokens

    async def extract(self, text: str, max_claims: int) -> list[RawClaim]:
        """
        Extract up to ``max_claims`` claims from ``text``.

        Returns:
            Claims in model order, truncated to the limit.
        """
        if not text or not text.strip():
            return []

        limit = max(1, min(max_claims, self._limit))
        payload = await self._gateway.call_json(
            build_extraction_prompt(text, limit),
            ExtractionPayload,
            system=EXTRACTION_SYSTEM,
            max_tokens=self._max_tokens,
            list_key="claims",
        )

        claims: list[RawClaim] = []
        unlocated = 0
        for item in payload.claims:
            claim = self._build_claim(item, text)
            if claim is None:
                continue
            if claim.span.is_empty:
                unlocated += 1
            claims.append(claim)
            if len(claims) >= limit:
                break

        logger.info(
            f"Extracted {len(claims)} claims from text ({unlocated} without a located span)"
        )
        return claims

    def _build_claim(self, item: ExtractedClaimPayload, text: str) -> RawClaim | None:
        start, end = item.span_start, item.span_end
        reported_valid = start is not None and end is not None and 0 <= start < end <= len(text)

        display = item.original_text.strip()
        if not display and reported_valid:
            display = text[start:end].strip()
        if not display:
            display = " ".join(p for p in (item.subject, item.predicate) if p).strip()
        if not display:
            logger.debug("Skipping extracted claim without any text")
            return None

        span = locate_span(text, display, hint=start if reported_valid else 0)
        if span is None:
            logger.debug(f"Could not locate claim in text: {display[:80]!r}")
            return RawClaim(
                subject=item.subject,
                predicate=item.predicate,
                numbers=item.numbers,
                dates=item.dates,
                original_text=display,
                span_start=0,
                span_end=0,
            )

        return RawClaim(
            subject=item.subject,
            predicate=item.predicate,
            numbers=item.numbers,
            dates=item.dates,
            original_text=text[span.start : span.end],
            span_start=span.start,
            span_end=span.end,
        )
