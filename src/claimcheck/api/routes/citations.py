"""
Citation API Endpoints
======================
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from claimcheck.api.schemas.requests import FormatCitationRequest
from claimcheck.api.schemas.responses import ErrorResponse, FormatCitationResponse
from claimcheck.application.format_citation import CitationLookupService
from claimcheck.infrastructure.dependencies import get_citation_service, get_request_id

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/format-citation",
    response_model=FormatCitationResponse,
    response_model_by_alias=True,
    status_code=status.HTTP_200_OK,
    summary="Format a citation for a URL",
    description=(
        "Reads the page's title and author/date/publisher metadata and renders "
        "an MLA, APA or Chicago citation."
    ),
    responses={400: {"model": ErrorResponse, "description": "Invalid URL"}},
)
async def format_citation(
    body: FormatCitationRequest,
    service: Annotated[CitationLookupService, Depends(get_citation_service)],
    request_id: Annotated[str, Depends(get_request_id)],
) -> FormatCitationResponse:
    logger.info(
        f"Formatting {body.style.value} citation for {body.source_url}",
        extra={"request_id": request_id},
    )
    formatted = await service.format_from_url(body.source_url, body.style, body.format)
    return FormatCitationResponse.from_domain(formatted)
