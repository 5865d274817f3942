"""
Analysis API Endpoints
======================

Claim analysis (synchronous and streamed) and document risk review.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Annotated, Any

import orjson
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse

from claimcheck.api.schemas.requests import AnalyzeClaimsRequest, ReviewDocumentRequest
from claimcheck.api.schemas.responses import (
    AnalyzeClaimsResponse,
    ClaimResponse,
    ErrorResponse,
    MetadataResponse,
    ReviewDocumentResponse,
)
from claimcheck.application.analyze_claims import PipelineOrchestrator
from claimcheck.application.review_document import ReviewDocumentUseCase
from claimcheck.domain.entities import CitationStyle
from claimcheck.domain.results import (
    ClaimEvent,
    DoneEvent,
    ErrorEvent,
    ExtractionEvent,
    PipelineEvent,
    PipelineRequest,
)
from claimcheck.infrastructure.dependencies import (
    ServiceContainer,
    get_container,
    get_orchestrator,
    get_request_id,
    get_review_use_case,
    get_user_profile,
)
from claimcheck.ports.collaborators import UserProfile

router = APIRouter()
logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("claimcheck.audit")

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid or blocked input"},
    502: {"model": ErrorResponse, "description": "Claim extraction failed upstream"},
    500: {"model": ErrorResponse, "description": "Unexpected error"},
}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _format_text_preview(text: str, max_len: int = 160) -> str:
    normalized = " ".join(text.strip().split())
    if len(normalized) <= max_len:
        return normalized
    return f"{normalized[:max_len].rstrip()}…"


def _preferred_style(profile: UserProfile | None) -> CitationStyle | None:
    if profile is None or not profile.citation_style_preference:
        return None
    try:
        return CitationStyle(profile.citation_style_preference.strip().lower())
    except ValueError:
        logger.debug(f"Ignoring unknown citation style preference {profile.citation_style_preference!r}")
        return None


def build_pipeline_request(
    body: AnalyzeClaimsRequest,
    profile: UserProfile | None,
    container: ServiceContainer,
) -> PipelineRequest:
    """
    Fill request defaults.

    Explicit body values win, then the caller's stored preferences, then
    the configured defaults.
    """
    pipeline = container.settings.pipeline
    max_claims = body.options.max_claims
    if max_claims is None and profile is not None and profile.max_claims_preference:
        max_claims = min(profile.max_claims_preference, pipeline.max_claims_limit)
    return PipelineRequest(
        text=body.text,
        citation_style=body.citation_style or _preferred_style(profile) or CitationStyle.MLA,
        max_claims=max_claims or pipeline.default_max_claims,
        user_id=profile.user_id if profile is not None else None,
    )


def _event_payload(event: PipelineEvent) -> dict[str, Any]:
    if isinstance(event, ExtractionEvent):
        return {"total": event.total}
    if isinstance(event, ClaimEvent):
        claim = ClaimResponse.from_domain(event.claim)
        return {"index": event.index, "claim": claim.model_dump(by_alias=True, mode="json")}
    if isinstance(event, DoneEvent):
        metadata = MetadataResponse.from_domain(event.metadata)
        return {
            "requestId": event.request_id,
            "metadata": metadata.model_dump(by_alias=True, mode="json"),
        }
    if isinstance(event, ErrorEvent):
        return {"message": event.message, "requestId": event.request_id}
    raise TypeError(f"Unknown pipeline event {type(event).__name__}")


def encode_sse(event: PipelineEvent) -> bytes:
    """Serialize one event as a Server-Sent Events frame."""
    data = orjson.dumps(_event_payload(event))
    return b"event: " + event.event.encode() + b"\ndata: " + data + b"\n\n"


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post(
    "/analyze-claims",
    response_model=AnalyzeClaimsResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    summary="Verify the factual claims in a text",
    description=(
        "Extract factual claims, retrieve web evidence for each, adjudicate "
        "a verdict and return citations and rewrites for every claim."
    ),
    responses=ERROR_RESPONSES,
)
async def analyze_claims(
    body: AnalyzeClaimsRequest,
    orchestrator: Annotated[PipelineOrchestrator, Depends(get_orchestrator)],
    container: Annotated[ServiceContainer, Depends(get_container)],
    profile: Annotated[UserProfile | None, Depends(get_user_profile)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> AnalyzeClaimsResponse:
    """Run the full verification pipeline and return the aggregated result."""
    pipeline_request = build_pipeline_request(body, profile, container)

    audit_logger.info(
        f'[REQUEST] ID: {request_id} - UserID: "{pipeline_request.user_id or "anonymous"}" - '
        f'Style: "{pipeline_request.citation_style.value}" - '
        f'Text: "{_format_text_preview(pipeline_request.text)}"'
    )

    result = await orchestrator.run(pipeline_request, request_id=request_id)

    audit_logger.info(
        f"[OUTPUT] ID: {request_id} - CLAIMS: {len(result.claims)} - CACHED: {result.cached}"
    )
    return AnalyzeClaimsResponse.from_domain(result)


@router.post(
    "/analyze-claims/stream",
    status_code=status.HTTP_200_OK,
    summary="Verify claims, streaming results as Server-Sent Events",
    description=(
        "Emits `extraction` once, one `claim` event per claim as it completes, "
        "then exactly one terminal `done` or `error` event."
    ),
    responses={
        200: {"content": {"text/event-stream": {}}},
        **ERROR_RESPONSES,
    },
)
async def analyze_claims_stream(
    body: AnalyzeClaimsRequest,
    orchestrator: Annotated[PipelineOrchestrator, Depends(get_orchestrator)],
    container: Annotated[ServiceContainer, Depends(get_container)],
    profile: Annotated[UserProfile | None, Depends(get_user_profile)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> StreamingResponse:
    """Stream pipeline events; input errors are still reported as HTTP 400."""
    pipeline_request = build_pipeline_request(body, profile, container)
    # Reject bad input before the 200 status line is committed
    orchestrator.validate(pipeline_request)

    audit_logger.info(
        f'[STREAM] ID: {request_id} - UserID: "{pipeline_request.user_id or "anonymous"}" - '
        f'Text: "{_format_text_preview(pipeline_request.text)}"'
    )

    async def event_source() -> AsyncIterator[bytes]:
        events = orchestrator.stream(pipeline_request, request_id=request_id)
        try:
            async for event in events:
                yield encode_sse(event)
        finally:
            await events.aclose()

    return StreamingResponse(
        event_source(),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.post(
    "/review-document",
    response_model=ReviewDocumentResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    summary="Rank a document's claims by heuristic risk",
    description="Evidence-free triage: returns the claims most likely to need checking.",
    responses=ERROR_RESPONSES,
)
async def review_document(
    body: ReviewDocumentRequest,
    use_case: Annotated[ReviewDocumentUseCase, Depends(get_review_use_case)],
    profile: Annotated[UserProfile | None, Depends(get_user_profile)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> ReviewDocumentResponse:
    """Score every extracted claim and return the riskiest ones."""
    logger.info(
        "Review request started",
        extra={"request_id": request_id, "text_length": len(body.text)},
    )
    result = await use_case.execute(
        body.text,
        max_risk_claims=body.options.max_risk_claims,
        user_id=profile.user_id if profile is not None else None,
    )
    return ReviewDocumentResponse.from_domain(result)
