"""
Evidence Provider Decorators
============================

Composable wrappers around any EvidenceProvider:
- CachedEvidenceProvider memoizes search results in the ResultCache,
- FallbackEvidenceProvider tries a secondary backend when the primary fails.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from claimcheck.domain.errors import UpstreamError
from claimcheck.ports.evidence_provider import EvidenceProvider

if TYPE_CHECKING:
    from claimcheck.domain.entities import EvidenceDocument
    from claimcheck.domain.services.result_cache import ResultCache

logger = logging.getLogger(__name__)


class CachedEvidenceProvider(EvidenceProvider):
    """
    Caches search results by normalized query.

    Empty result lists are not cached so that a transient empty page does
    not stick for the whole TTL.
    """

    def __init__(self, inner: EvidenceProvider, cache: ResultCache) -> None:
        self._inner = inner
        self._cache = cache

    @property
    def source_name(self) -> str:
        return self._inner.source_name

    @property
    def timeout_budget_seconds(self) -> float | None:
        return self._inner.timeout_budget_seconds

    async def connect(self) -> None:
        await self._inner.connect()

    async def disconnect(self) -> None:
        await self._inner.disconnect()

    async def search(self, query: str) -> list[EvidenceDocument]:
        cached = await self._cache.get_search(query)
        if cached is not None:
            logger.debug(f"Search cache hit ({len(cached)} documents)")
            return cached

        documents = await self._inner.search(query)
        if documents:
            await self._cache.set_search(query, documents)
        return documents


class FallbackEvidenceProvider(EvidenceProvider):
    """Uses ``secondary`` when ``primary`` raises an upstream error."""

    def __init__(self, primary: EvidenceProvider, secondary: EvidenceProvider) -> None:
        self._primary = primary
        self._secondary = secondary

    @property
    def source_name(self) -> str:
        return f"{self._primary.source_name}+{self._secondary.source_name}"

    @property
    def timeout_budget_seconds(self) -> float | None:
        primary = self._primary.timeout_budget_seconds
        secondary = self._secondary.timeout_budget_seconds
        if primary is None or secondary is None:
            return None
        return primary + secondary

    async def connect(self) -> None:
        await self._primary.connect()
        await self._secondary.connect()

    async def disconnect(self) -> None:
        await self._primary.disconnect()
        await self._secondary.disconnect()

    async def search(self, query: str) -> list[EvidenceDocument]:
        try:
            return await self._primary.search(query)
        except UpstreamError as e:
            logger.warning(
                f"{self._primary.source_name} search failed ({e}); "
                f"falling back to {self._secondary.source_name}"
            )
            return await self._secondary.search(query)
