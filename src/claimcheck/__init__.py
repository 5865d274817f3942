"""
ClaimCheck Verification API
===========================

A hexagonal-architecture service that extracts discrete factual claims
from free-form text, retrieves web evidence for each claim, ranks the
sources, adjudicates a verdict using only that evidence and attaches
citation-ready source formatting.

Layers:
- domain: Entities, value objects, errors and domain services
- ports: Abstract interfaces (LLMProvider, EvidenceProvider, CacheProvider)
- application: Use-case orchestration (PipelineOrchestrator)
- adapters: Concrete implementations for external services
- infrastructure: Config, DI wiring, entrypoint
- api: FastAPI routes and request/response schemas
"""

__version__ = "0.1.0"
