"""
Domain Entities
===============

Core business objects flowing through the claim verification pipeline.
These are immutable value objects with no infrastructure dependencies.
"""

from __future__ import annotations

from enum import IntEnum, StrEnum
from uuid import uuid4

from pydantic import BaseModel, Field, field_validator, model_validator


class Verdict(StrEnum):
    """Adjudicated status of a claim given the retrieved evidence."""

    SUPPORTED = "supported"  # Sources confirm the core assertion
    OVERSTATED = "overstated"  # Absolutes/exaggeration beyond what sources say
    DISPUTED = "disputed"  # Sources conflict with the claim or each other
    UNCLEAR = "unclear"  # No usable evidence; mandatory default

    @property
    def needs_rewrite(self) -> bool:
        """Whether rewordings should be proposed for this verdict."""
        return self in (Verdict.OVERSTATED, Verdict.DISPUTED)


class CitationStyle(StrEnum):
    """Supported citation styles."""

    MLA = "mla"
    APA = "apa"
    CHICAGO = "chicago"


class CitationFormat(StrEnum):
    """Which rendering of a citation to produce."""

    INLINE = "inline"
    BIBLIOGRAPHY = "bibliography"
    BOTH = "both"


class Tier(IntEnum):
    """Coarse reliability classification of a source domain."""

    AUTHORITATIVE = 1
    REFERENCE = 2
    GENERAL_WEB = 3
    USER_EDITABLE = 4


TIER_BASE_SCORES: dict[int, float] = {
    Tier.AUTHORITATIVE: 1.0,
    Tier.REFERENCE: 0.75,
    Tier.GENERAL_WEB: 0.4,
    Tier.USER_EDITABLE: 0.3,
}


class Span(BaseModel):
    """Character offsets of a claim's sentence in the request text."""

    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_order(self) -> Span:
        if self.end < self.start:
            raise ValueError("span end must not precede span start")
        return self

    @property
    def is_empty(self) -> bool:
        return self.end == self.start


class RawClaim(BaseModel):
    """
    A discrete factual assertion as produced by the claim extractor.

    Spans are re-derived from the request text; a zero-length span means
    the claim could not be located and ``original_text`` is the model's
    own rendering of the sentence.
    """

    subject: str = ""
    predicate: str = ""
    numbers: str | None = None
    dates: str | None = None
    original_text: str = Field(..., min_length=1)
    span_start: int = Field(default=0, ge=0)
    span_end: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @property
    def span(self) -> Span:
        return Span(start=self.span_start, end=self.span_end)


class EvidenceDocument(BaseModel):
    """A candidate document returned by the web search backend."""

    title: str = ""
    url: str
    snippet: str = ""
    domain: str = ""
    date_published: str | None = None

    model_config = {"frozen": True}


class RankedSource(EvidenceDocument):
    """An evidence document with reliability tier and ranking score."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    tier: int = Field(..., ge=1, le=4)
    score: float = Field(..., ge=0.0, le=1.0)


class CitedSource(RankedSource):
    """A ranked source with citation strings attached."""

    citation_inline: str
    citation_bibliography: str


class Rewrite(BaseModel):
    """An evidence-aligned rewording proposal for a claim."""

    text: str = Field(..., min_length=1)
    confidence: float = Field(..., ge=0.0, le=1.0)

    model_config = {"frozen": True}

    @field_validator("text")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("rewrite text must not be blank")
        return value


class ProcessedClaim(BaseModel):
    """
    Complete verification outcome for one claim.

    This is the unit that is cached and streamed.
    """

    claim_id: str = Field(default_factory=lambda: str(uuid4()))
    original_text: str
    span: Span = Field(default_factory=Span)
    verdict: Verdict
    explanation: str
    sources: list[CitedSource] = Field(default_factory=list)
    rewrites: list[Rewrite] = Field(default_factory=list)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _rewrites_only_when_needed(self) -> ProcessedClaim:
        if self.rewrites and not self.verdict.needs_rewrite:
            raise ValueError(f"rewrites are not allowed for verdict {self.verdict.value!r}")
        return self


class SourceMetadata(BaseModel):
    """Bibliographic metadata used to render a citation."""

    title: str
    url: str
    author: str | None = None
    publisher: str | None = None
    date: str | None = None
    domain: str | None = None

    model_config = {"frozen": True}
