"""
Domain Results
==============

Request/result value objects and the incremental events emitted while a
pipeline run is in progress.
"""

from __future__ import annotations

from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

from claimcheck.domain.entities import CitationStyle, ProcessedClaim


class PipelineRequest(BaseModel):
    """Validated input for one pipeline run."""

    text: str = Field(..., min_length=1)
    citation_style: CitationStyle = CitationStyle.MLA
    max_claims: int = Field(default=10, ge=1)
    user_id: str | None = None

    model_config = {"frozen": True}


class PipelineMetadata(BaseModel):
    """Aggregate metadata about a finished run."""

    processing_time_ms: float = Field(..., ge=0.0)
    claims_extracted: int = Field(..., ge=0)
    citation_style: CitationStyle

    model_config = {"frozen": True}


class PipelineResult(BaseModel):
    """Complete outcome of a pipeline run, claims in extraction order."""

    request_id: str = Field(default_factory=lambda: str(uuid4()))
    claims: list[ProcessedClaim] = Field(default_factory=list)
    metadata: PipelineMetadata
    cached: bool = Field(default=False, description="Whether the result came from the request cache")

    model_config = {"frozen": True}


# -----------------------------------------------------------------------------
# Streaming events
# -----------------------------------------------------------------------------


class ExtractionEvent(BaseModel):
    """Emitted once, after claim extraction."""

    event: Literal["extraction"] = "extraction"
    total: int = Field(..., ge=0)

    model_config = {"frozen": True}


class ClaimEvent(BaseModel):
    """Emitted once per completed claim, in completion order."""

    event: Literal["claim"] = "claim"
    index: int = Field(..., ge=0, description="Original extraction index")
    claim: ProcessedClaim

    model_config = {"frozen": True}


class DoneEvent(BaseModel):
    """Terminal event for a successful run."""

    event: Literal["done"] = "done"
    request_id: str
    metadata: PipelineMetadata

    model_config = {"frozen": True}


class ErrorEvent(BaseModel):
    """Terminal event for a failed run. Never carries upstream error text."""

    event: Literal["error"] = "error"
    message: str
    request_id: str

    model_config = {"frozen": True}


PipelineEvent = ExtractionEvent | ClaimEvent | DoneEvent | ErrorEvent

TERMINAL_EVENTS = (DoneEvent, ErrorEvent)
