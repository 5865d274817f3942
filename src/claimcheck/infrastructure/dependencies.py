"""
Dependency Injection Container
==============================

Builds every adapter, domain service and use-case once per application
lifetime and exposes them to routes through FastAPI dependency functions.
The container lives on ``app.state``; nothing is held in module globals.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import uuid4

from fastapi import Header, Request

from claimcheck.adapters.outbound.cache_memory import InMemoryCacheAdapter
from claimcheck.adapters.outbound.cache_redis import RedisCacheAdapter
from claimcheck.adapters.outbound.llm_openai import build_llm_backends
from claimcheck.adapters.outbound.page_metadata_http import HTTPPageMetadataAdapter
from claimcheck.adapters.outbound.search_brave import BraveSearchAdapter
from claimcheck.adapters.outbound.search_cached import (
    CachedEvidenceProvider,
    FallbackEvidenceProvider,
)
from claimcheck.adapters.outbound.search_duckduckgo import DuckDuckGoSearchAdapter
from claimcheck.application.analyze_claims import PipelineOrchestrator, evidence_deadline
from claimcheck.application.format_citation import CitationLookupService
from claimcheck.application.review_document import ReviewDocumentUseCase
from claimcheck.domain.errors import CacheFailure
from claimcheck.domain.services.claim_extractor import ClaimExtractor
from claimcheck.domain.services.reasoning_gateway import ReasoningGateway
from claimcheck.domain.services.result_cache import ResultCache
from claimcheck.domain.services.rewrite_generator import RewriteGenerator
from claimcheck.domain.services.source_ranker import SourceRanker
from claimcheck.domain.services.verdict_adjudicator import VerdictAdjudicator
from claimcheck.infrastructure.config import Settings, get_settings

if TYPE_CHECKING:
    from fastapi import FastAPI

    from claimcheck.infrastructure.config import SearchSettings
    from claimcheck.ports.cache import CacheProvider
    from claimcheck.ports.collaborators import HistoryRecorder, IdentityProvider, UserProfile
    from claimcheck.ports.evidence_provider import EvidenceProvider
    from claimcheck.ports.page_metadata import PageMetadataProvider

logger = logging.getLogger(__name__)

SHUTDOWN_TIMEOUT_SECONDS = 5.0


@dataclass
class ServiceContainer:
    """Explicitly constructed service graph for one application instance."""

    settings: Settings
    cache_provider: CacheProvider
    result_cache: ResultCache
    gateway: ReasoningGateway
    evidence: EvidenceProvider
    metadata_fetcher: PageMetadataProvider
    orchestrator: PipelineOrchestrator
    review: ReviewDocumentUseCase
    citations: CitationLookupService
    identity: IdentityProvider | None = None
    history: HistoryRecorder | None = None

    async def health(self) -> dict[str, bool]:
        """Readiness of the cache and each reasoning backend."""
        cache_ok = await self.result_cache.health_check()
        backends = await self.gateway.health_check()
        return {"cache": cache_ok, **{f"llm:{name}": ok for name, ok in backends.items()}}

    async def close(self) -> None:
        """
        Release every resource, continuing past individual failures.

        Each close is shielded so shutdown cancellation cannot leave
        connections half-closed.
        """
        logger.info("Starting adapter cleanup...")
        steps = (
            ("pipeline background tasks", self.orchestrator.drain()),
            ("review background tasks", self.review.drain()),
            ("evidence provider", self.evidence.disconnect()),
            ("metadata fetcher", self.metadata_fetcher.close()),
            ("reasoning backends", self.gateway.close()),
            ("cache provider", self.cache_provider.disconnect()),
        )
        for name, step in steps:
            try:
                await asyncio.shield(asyncio.wait_for(step, timeout=SHUTDOWN_TIMEOUT_SECONDS))
                logger.debug(f"Closed {name}")
            except TimeoutError:
                logger.warning(f"Closing {name} timed out")
            except asyncio.CancelledError:
                logger.warning(f"Closing {name} cancelled")
            except Exception as e:
                logger.warning(f"Closing {name} failed: {e}")
        logger.info("Adapter cleanup complete")


# -----------------------------------------------------------------------------
# Construction
# -----------------------------------------------------------------------------


async def build_cache_provider(settings: Settings) -> CacheProvider:
    """Redis when enabled and reachable, otherwise the in-memory store."""
    if settings.redis.enabled:
        redis_cache = RedisCacheAdapter(settings.redis)
        try:
            await redis_cache.connect()
            return redis_cache
        except CacheFailure as e:
            logger.warning(f"Redis unavailable, using in-memory cache: {e}")

    memory = InMemoryCacheAdapter(
        max_entries=settings.cache.memory_max_entries,
        sweep_interval_seconds=settings.cache.memory_sweep_interval_seconds,
    )
    await memory.connect()
    return memory


def build_search_provider(settings: SearchSettings) -> EvidenceProvider:
    """Pick the web-search backend for ``settings.provider``."""
    duckduckgo = DuckDuckGoSearchAdapter(
        base_url=settings.duckduckgo_url,
        timeout=settings.timeout_seconds,
        max_results=settings.max_results,
    )
    brave_key = settings.brave_api_key.get_secret_value() if settings.brave_api_key else ""

    if settings.provider == "duckduckgo":
        return duckduckgo
    if settings.provider == "brave" and not brave_key:
        raise ValueError("SEARCH_PROVIDER=brave requires SEARCH_BRAVE_API_KEY")
    if not brave_key:
        return duckduckgo

    brave = BraveSearchAdapter(
        brave_key,
        base_url=settings.brave_url,
        timeout=settings.timeout_seconds,
        max_results=settings.max_results,
    )
    return FallbackEvidenceProvider(brave, duckduckgo)


async def build_container(
    settings: Settings | None = None,
    *,
    identity: IdentityProvider | None = None,
    history: HistoryRecorder | None = None,
) -> ServiceContainer:
    """
    Wire concrete adapters to ports based on configuration.

    Args:
        settings: Settings to use (defaults to ``get_settings()``).
        identity: Optional identity collaborator.
        history: Optional history collaborator.
    """
    settings = settings or get_settings()
    logger.info(f"Initializing service container - Environment: {settings.environment}")

    cache_provider = await build_cache_provider(settings)
    result_cache = ResultCache(
        cache_provider,
        claim_ttl_seconds=settings.cache.claim_ttl_seconds,
        search_ttl_seconds=settings.cache.search_ttl_seconds,
        source_metadata_ttl_seconds=settings.cache.source_metadata_ttl_seconds,
        request_ttl_seconds=settings.cache.request_ttl_seconds,
    )
    logger.info(f"Cache ready: {type(cache_provider).__name__}")

    gateway = ReasoningGateway(
        build_llm_backends(settings.llm),
        retry_rounds=settings.llm.retry_rounds,
        base_delay_seconds=settings.llm.retry_base_delay_seconds,
        timeout_seconds=settings.llm.timeout_seconds,
        temperature=settings.llm.temperature,
    )
    logger.info(f"Reasoning gateway initialized: backends={gateway.backend_names}")

    search = build_search_provider(settings.search)
    evidence = CachedEvidenceProvider(search, result_cache)
    await evidence.connect()
    evidence_timeout = evidence_deadline(evidence)
    logger.info(
        f"Evidence provider initialized: {evidence.source_name} "
        f"(deadline {evidence_timeout}s)"
    )

    pipeline = settings.pipeline
    extractor = ClaimExtractor(
        gateway,
        max_claims_limit=max(pipeline.max_claims_limit, pipeline.review_extraction_claims),
        max_tokens=settings.llm.extraction_max_tokens,
    )
    orchestrator = PipelineOrchestrator(
        extractor=extractor,
        evidence=evidence,
        ranker=SourceRanker(
            max_sources=pipeline.max_sources_per_claim,
            min_sources=pipeline.min_sources_per_claim,
        ),
        adjudicator=VerdictAdjudicator(
            gateway,
            max_sources=pipeline.max_adjudication_sources,
            max_tokens=settings.llm.verdict_max_tokens,
        ),
        rewriter=RewriteGenerator(gateway, max_tokens=settings.llm.rewrite_max_tokens),
        cache=result_cache,
        history=history,
        concurrency=pipeline.concurrency,
        max_text_chars=pipeline.max_text_chars,
        max_claims_limit=pipeline.max_claims_limit,
        evidence_timeout_seconds=evidence_timeout,
        enable_request_cache=pipeline.enable_request_cache,
        content_filter_enabled=pipeline.content_filter_enabled,
    )
    review = ReviewDocumentUseCase(
        extractor,
        history=history,
        max_chars=pipeline.review_max_chars,
        extraction_claims=pipeline.review_extraction_claims,
        max_risk_claims=pipeline.review_max_risk_claims,
        content_filter_enabled=pipeline.content_filter_enabled,
    )
    metadata_fetcher = HTTPPageMetadataAdapter(timeout=pipeline.citation_fetch_timeout_seconds)
    citations = CitationLookupService(metadata_fetcher, result_cache)

    logger.info("Service container ready")
    return ServiceContainer(
        settings=settings,
        cache_provider=cache_provider,
        result_cache=result_cache,
        gateway=gateway,
        evidence=evidence,
        metadata_fetcher=metadata_fetcher,
        orchestrator=orchestrator,
        review=review,
        citations=citations,
        identity=identity,
        history=history,
    )


# -----------------------------------------------------------------------------
# Lifecycle management
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan_manager(app: FastAPI) -> AsyncIterator[None]:
    """
    Build the container on startup and close it on shutdown.

    Usage in FastAPI:
        app = FastAPI(lifespan=lifespan_manager)
    """
    container = await build_container()
    app.state.container = container
    try:
        yield
    finally:
        await container.close()
        app.state.container = None


# -----------------------------------------------------------------------------
# FastAPI Dependency providers
# -----------------------------------------------------------------------------


def get_container(request: Request) -> ServiceContainer:
    """Dependency: the application's service container."""
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Service container not initialized. Check application lifespan.")
    return container


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    """Dependency: the claim analysis pipeline."""
    return get_container(request).orchestrator


def get_review_use_case(request: Request) -> ReviewDocumentUseCase:
    """Dependency: the document review use-case."""
    return get_container(request).review


def get_citation_service(request: Request) -> CitationLookupService:
    """Dependency: the citation lookup service."""
    return get_container(request).citations


async def get_user_profile(
    request: Request,
    authorization: str | None = Header(default=None),
) -> UserProfile | None:
    """
    Dependency: the caller's profile, if an identity collaborator is wired.

    Identity failures degrade to an anonymous caller.
    """
    container = getattr(request.app.state, "container", None)
    identity = container.identity if container is not None else None
    if identity is None or not authorization:
        return None
    try:
        return await identity.resolve(authorization)
    except Exception as e:
        logger.warning(f"Identity resolution failed, treating caller as anonymous: {e}")
        return None


def get_request_id(request: Request) -> str:
    """Dependency: the correlation id assigned by the request-id middleware."""
    request_id = getattr(request.state, "request_id", None)
    if request_id is None:
        request_id = str(uuid4())
        request.state.request_id = request_id
    return request_id
