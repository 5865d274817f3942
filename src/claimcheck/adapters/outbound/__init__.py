"""Outbound adapters for external services."""

from claimcheck.adapters.outbound.cache_memory import InMemoryCacheAdapter
from claimcheck.adapters.outbound.cache_redis import RedisCacheAdapter
from claimcheck.adapters.outbound.llm_openai import OpenAILLMAdapter, build_llm_backends
from claimcheck.adapters.outbound.page_metadata_http import HTTPPageMetadataAdapter
from claimcheck.adapters.outbound.search_brave import BraveSearchAdapter
from claimcheck.adapters.outbound.search_cached import (
    CachedEvidenceProvider,
    FallbackEvidenceProvider,
)
from claimcheck.adapters.outbound.search_duckduckgo import DuckDuckGoSearchAdapter

__all__ = [
    # Cache backing stores
    "InMemoryCacheAdapter",
    "RedisCacheAdapter",
    # Reasoning backends
    "OpenAILLMAdapter",
    "build_llm_backends",
    # Evidence
    "BraveSearchAdapter",
    "CachedEvidenceProvider",
    "DuckDuckGoSearchAdapter",
    "FallbackEvidenceProvider",
    # Citation metadata
    "HTTPPageMetadataAdapter",
]
