"""
Brave Search Adapter
====================

Queries the Brave web search JSON API.
https://api.search.brave.com/res/v1/web/search
"""

from __future__ import annotations

import logging

import httpx

from claimcheck.adapters.outbound.search_base import HTTPSearchProvider
from claimcheck.domain.entities import EvidenceDocument
from claimcheck.domain.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class BraveSearchAdapter(HTTPSearchProvider):
    """Adapter for the Brave Search API (requires a subscription token)."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://api.search.brave.com",
        timeout: float = 10.0,
        max_results: int = 10,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("Brave search requires an API key")
        self._api_key = api_key
        super().__init__(
            base_url,
            timeout=timeout,
            max_results=max_results,
            transport=transport,
        )

    @property
    def source_name(self) -> str:
        return "Brave"

    def _default_headers(self) -> dict[str, str]:
        return {
            **super()._default_headers(),
            "Accept": "application/json",
            "X-Subscription-Token": self._api_key,
        }

    async def search(self, query: str) -> list[EvidenceDocument]:
        """Search the web for ``query``."""
        response = await self._get(
            "/res/v1/web/search",
            params={"q": query, "count": self._max_results, "safesearch": "moderate"},
        )
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(
                "Brave returned a non-JSON body", errors={self.source_name: str(e)}
            ) from e

        results = (data.get("web") or {}).get("results") or []
        documents: list[EvidenceDocument] = []
        for item in results:
            doc = self._document(
                title=item.get("title") or "",
                url=item.get("url") or "",
                snippet=item.get("description") or "",
                date_published=item.get("page_age"),
            )
            if doc is not None:
                documents.append(doc)
            if len(documents) >= self._max_results:
                break

        logger.debug(f"Brave returned {len(documents)} documents")
        return documents
