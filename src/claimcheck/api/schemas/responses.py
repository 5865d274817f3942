"""API response schemas (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, Field

from claimcheck.api.schemas.requests import CamelModel
from claimcheck.application.format_citation import FormattedCitation
from claimcheck.application.review_document import ReviewResult
from claimcheck.domain.entities import CitationStyle, CitedSource, ProcessedClaim, Verdict
from claimcheck.domain.results import PipelineMetadata, PipelineResult


class SpanResponse(CamelModel):
    start: int
    end: int


class SourceResponse(CamelModel):
    id: str
    title: str
    url: str
    snippet: str
    domain: str
    date_published: str | None = None
    reliability_tier: int
    score: float
    citation_inline: str
    citation_bibliography: str

    @classmethod
    def from_domain(cls, source: CitedSource) -> SourceResponse:
        return cls(
            id=source.id,
            title=source.title,
            url=source.url,
            snippet=source.snippet,
            domain=source.domain,
            date_published=source.date_published,
            reliability_tier=source.tier,
            score=source.score,
            citation_inline=source.citation_inline,
            citation_bibliography=source.citation_bibliography,
        )


class RewriteResponse(CamelModel):
    text: str
    confidence: float


class ClaimResponse(CamelModel):
    claim_id: str
    original_text: str
    span: SpanResponse
    verdict: Verdict
    explanation: str
    sources: list[SourceResponse]
    rewrites: list[RewriteResponse]

    @classmethod
    def from_domain(cls, claim: ProcessedClaim) -> ClaimResponse:
        return cls(
            claim_id=claim.claim_id,
            original_text=claim.original_text,
            span=SpanResponse(start=claim.span.start, end=claim.span.end),
            verdict=claim.verdict,
            explanation=claim.explanation,
            sources=[SourceResponse.from_domain(s) for s in claim.sources],
            rewrites=[RewriteResponse(text=r.text, confidence=r.confidence) for r in claim.rewrites],
        )


class MetadataResponse(CamelModel):
    processing_time_ms: float
    claims_extracted: int
    citation_style: CitationStyle

    @classmethod
    def from_domain(cls, metadata: PipelineMetadata) -> MetadataResponse:
        return cls(**metadata.model_dump())


class AnalyzeClaimsResponse(CamelModel):
    """Response from the synchronous analysis endpoint."""

    request_id: str
    claims: list[ClaimResponse]
    metadata: MetadataResponse
    cached: bool = False

    @classmethod
    def from_domain(cls, result: PipelineResult) -> AnalyzeClaimsResponse:
        return cls(
            request_id=result.request_id,
            claims=[ClaimResponse.from_domain(c) for c in result.claims],
            metadata=MetadataResponse.from_domain(result.metadata),
            cached=result.cached,
        )


class RiskClaimResponse(CamelModel):
    claim_id: str
    original_text: str
    span: SpanResponse
    risk_score: float
    risk_signals: list[str]
    summary_verdict: str


class ReviewMetadataResponse(CamelModel):
    processing_time_ms: float
    words_processed: int
    claims_scored: int


class ReviewDocumentResponse(CamelModel):
    request_id: str
    total_claims_found: int
    high_risk_claims: list[RiskClaimResponse]
    metadata: ReviewMetadataResponse

    @classmethod
    def from_domain(cls, result: ReviewResult) -> ReviewDocumentResponse:
        return cls.model_validate(result.model_dump(mode="json"))


class SourceMetadataResponse(CamelModel):
    title: str
    url: str
    author: str | None = None
    publisher: str | None = None
    date: str | None = None


class FormatCitationResponse(CamelModel):
    citation_inline: str
    citation_bibliography: str
    metadata_used: SourceMetadataResponse

    @classmethod
    def from_domain(cls, formatted: FormattedCitation) -> FormatCitationResponse:
        meta = formatted.metadata_used
        return cls(
            citation_inline=formatted.citation_inline,
            citation_bibliography=formatted.citation_bibliography,
            metadata_used=SourceMetadataResponse(
                title=meta.title,
                url=meta.url,
                author=meta.author,
                publisher=meta.publisher,
                date=meta.date,
            ),
        )


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
    request_id: str
    details: list[dict] | None = Field(default=None)
