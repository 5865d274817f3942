"""
ReviewDocumentUseCase
=====================

Evidence-free triage of a longer document: extract claims, score each
sentence with the heuristic risk scorer and return the riskiest ones.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING
from uuid import uuid4

from pydantic import BaseModel, Field

from claimcheck.domain.entities import Span
from claimcheck.domain.errors import InputValidationError
from claimcheck.domain.services.content_filter import ensure_allowed
from claimcheck.domain.services.risk_scorer import RiskLabel, RiskSignal, score_claim_risk
from claimcheck.ports.collaborators import HistoryEntry

if TYPE_CHECKING:
    from claimcheck.domain.services.claim_extractor import ClaimExtractor
    from claimcheck.ports.collaborators import HistoryRecorder

logger = logging.getLogger(__name__)


class RiskClaim(BaseModel):
    claim_id: str = Field(default_factory=lambda: str(uuid4()))
    original_text: str
    span: Span
    risk_score: float = Field(..., ge=0.0, le=1.0)
    risk_signals: list[RiskSignal] = Field(default_factory=list)
    summary_verdict: RiskLabel

    model_config = {"frozen": True}


class ReviewMetadata(BaseModel):
    processing_time_ms: float
    words_processed: int
    claims_scored: int

    model_config = {"frozen": True}


class ReviewResult(BaseModel):
    request_id: str = Field(default_factory=lambda: str(uuid4()))
    total_claims_found: int
    high_risk_claims: list[RiskClaim]
    metadata: ReviewMetadata

    model_config = {"frozen": True}


class ReviewDocumentUseCase:
    """Ranks a document's claims by heuristic risk."""

    def __init__(
        self,
        extractor: ClaimExtractor,
        *,
        history: HistoryRecorder | None = None,
        max_chars: int = 12000,
        extraction_claims: int = 100,
        max_risk_claims: int = 30,
        content_filter_enabled: bool = True,
    ) -> None:
        self._extractor = extractor
        self._history = history
        self._max_chars = max_chars
        self._extraction_claims = extraction_claims
        self._max_risk_claims = max_risk_claims
        self._content_filter_enabled = content_filter_enabled
        self._background: set[asyncio.Task[None]] = set()

    def validate(self, text: str, max_risk_claims: int) -> None:
        if not text.strip():
            raise InputValidationError("empty text", public_message="Text must not be empty")
        if len(text) > self._max_chars:
            raise InputValidationError(
                f"text length {len(text)} exceeds {self._max_chars}",
                public_message=f"Text exceeds the maximum length of {self._max_chars} characters",
            )
        if not 1 <= max_risk_claims <= self._max_risk_claims:
            raise InputValidationError(
                f"max_risk_claims {max_risk_claims} out of range",
                public_message=f"maxRiskClaims must be between 1 and {self._max_risk_claims}",
            )
        if self._content_filter_enabled:
            ensure_allowed(text)

    async def execute(
        self,
        text: str,
        *,
        max_risk_claims: int = 20,
        user_id: str | None = None,
    ) -> ReviewResult:
        """
        Review ``text``.

        Raises:
            InputValidationError: For invalid input.
            ParseError | UpstreamUnavailable: If claim extraction fails.
        """
        self.validate(text, max_risk_claims)
        start_time = time.perf_counter()

        claims = await self._extractor.extract(text, self._extraction_claims)

        scored: list[RiskClaim] = []
        for claim in claims:
            assessment = score_claim_risk(claim.original_text)
            scored.append(
                RiskClaim(
                    original_text=claim.original_text,
                    span=claim.span,
                    risk_score=assessment.score,
                    risk_signals=assessment.signals,
                    summary_verdict=assessment.label,
                )
            )
        # Stable sort keeps extraction order among equal scores
        scored.sort(key=lambda c: c.risk_score, reverse=True)

        result = ReviewResult(
            total_claims_found=len(claims),
            high_risk_claims=scored[:max_risk_claims],
            metadata=ReviewMetadata(
                processing_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
                words_processed=len(text.split()),
                claims_scored=len(claims),
            ),
        )
        logger.info(
            f"Reviewed document: {len(claims)} claims, "
            f"{len(result.high_risk_claims)} returned"
        )

        if self._history is not None:
            entry = HistoryEntry(
                user_id=user_id,
                type="review",
                input_snippet=text[:200],
                result_json=result.model_dump_json(),
                claim_count=len(result.high_risk_claims),
            )
            task = asyncio.create_task(self._record_history(entry))
            self._background.add(task)
            task.add_done_callback(self._background.discard)

        return result

    async def drain(self) -> None:
        """Wait for pending history hand-offs."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    async def _record_history(self, entry: HistoryEntry) -> None:
        if self._history is None:
            return
        try:
            await self._history.record(entry)
        except Exception as e:
            logger.error(f"Failed to save review to history: {e}")
