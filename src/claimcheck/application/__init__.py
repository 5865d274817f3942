"""Application use-cases orchestrating the domain services."""

from claimcheck.application.analyze_claims import PipelineOrchestrator
from claimcheck.application.format_citation import CitationLookupService, FormattedCitation
from claimcheck.application.review_document import ReviewDocumentUseCase, ReviewResult

__all__ = [
    "CitationLookupService",
    "FormattedCitation",
    "PipelineOrchestrator",
    "ReviewDocumentUseCase",
    "ReviewResult",
]
