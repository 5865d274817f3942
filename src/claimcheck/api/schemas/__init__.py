"""Wire-format request and response models."""

from claimcheck.api.schemas.requests import (
    AnalyzeClaimsRequest,
    FormatCitationRequest,
    ReviewDocumentRequest,
)
from claimcheck.api.schemas.responses import (
    AnalyzeClaimsResponse,
    ClaimResponse,
    ErrorResponse,
    FormatCitationResponse,
    MetadataResponse,
    ReviewDocumentResponse,
)

__all__ = [
    "AnalyzeClaimsRequest",
    "AnalyzeClaimsResponse",
    "ClaimResponse",
    "ErrorResponse",
    "FormatCitationRequest",
    "FormatCitationResponse",
    "MetadataResponse",
    "ReviewDocumentRequest",
    "ReviewDocumentResponse",
]
