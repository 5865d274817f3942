"""
Domain Services
===============

Pipeline stages: extraction, ranking, adjudication, rewriting, citation
formatting and result caching, plus the shared reasoning gateway.
"""

from claimcheck.domain.services.citation_formatter import (
    Citation,
    cite_source,
    format_citation,
    render_citation,
)
from claimcheck.domain.services.claim_extractor import ClaimExtractor, locate_span
from claimcheck.domain.services.reasoning_gateway import ReasoningGateway
from claimcheck.domain.services.result_cache import ResultCache
from claimcheck.domain.services.rewrite_generator import RewriteGenerator
from claimcheck.domain.services.risk_scorer import RiskAssessment, score_claim_risk
from claimcheck.domain.services.source_ranker import SourceRanker, assign_tier
from claimcheck.domain.services.verdict_adjudicator import Adjudication, VerdictAdjudicator

__all__ = [
    "Adjudication",
    "Citation",
    "ClaimExtractor",
    "ReasoningGateway",
    "ResultCache",
    "RewriteGenerator",
    "RiskAssessment",
    "SourceRanker",
    "VerdictAdjudicator",
    "assign_tier",
    "cite_source",
    "format_citation",
    "locate_span",
    "render_citation",
    "score_claim_risk",
]
