"""
API Request Schemas
===================

Request bodies are camelCase on the wire; snake_case is accepted too.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from claimcheck.domain.entities import CitationFormat, CitationStyle


class CamelModel(BaseModel):
    """Base model serialising field names as camelCase."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalyzeOptions(CamelModel):
    max_claims: int | None = Field(
        default=None,
        ge=1,
        le=20,
        description="Maximum number of claims to extract (defaults to the caller's preference, then 10).",
    )


class AnalyzeClaimsRequest(CamelModel):
    """Request body for claim analysis (sync and streaming)."""

    text: str = Field(
        ...,
        min_length=1,
        description="Text whose factual claims should be verified.",
        examples=["Water boils at 100°C at sea level."],
    )
    citation_style: CitationStyle | None = Field(
        default=None,
        description="Citation style for sources (defaults to the caller's preference, then MLA).",
    )
    options: AnalyzeOptions = Field(default_factory=AnalyzeOptions)


class ReviewOptions(CamelModel):
    max_risk_claims: int = Field(default=20, ge=1, le=30)


class ReviewDocumentRequest(CamelModel):
    """Request body for document risk review."""

    text: str = Field(..., min_length=1)
    options: ReviewOptions = Field(default_factory=ReviewOptions)


class FormatCitationRequest(CamelModel):
    """Request body for formatting a citation from a URL."""

    source_url: str = Field(..., min_length=1, examples=["https://www.nasa.gov/mission/apollo-11/"])
    style: CitationStyle = CitationStyle.MLA
    format: CitationFormat = CitationFormat.BOTH
