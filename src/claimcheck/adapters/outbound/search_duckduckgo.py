"""
DuckDuckGo Search Adapter
=========================

Keyless search via the DuckDuckGo HTML endpoint.
Result blocks are parsed with BeautifulSoup; malformed blocks are skipped.
"""

from __future__ import annotations

import html
import logging
from urllib.parse import parse_qs, urlsplit

import httpx
from bs4 import BeautifulSoup, Tag

from claimcheck.adapters.outbound.search_base import HTTPSearchProvider
from claimcheck.domain.entities import EvidenceDocument

logger = logging.getLogger(__name__)

MAX_RESULTS = 10


def _text(tag: Tag) -> str:
    return " ".join(tag.get_text().split())


def unwrap_redirect(url: str) -> str:
    """Resolve DuckDuckGo ``/l/?uddg=`` redirect links to the target URL."""
    url = html.unescape(url)
    target = parse_qs(urlsplit(url).query).get("uddg")
    if target:
        url = target[0]
    if url.startswith("//"):
        url = f"https:{url}"
    return url


def parse_results(page: str, limit: int = MAX_RESULTS) -> list[tuple[str, str, str]]:
    """Extract ``(title, url, snippet)`` triples from a results page."""
    soup = BeautifulSoup(page, "html.parser")

    results: list[tuple[str, str, str]] = []
    for block in soup.select("div.result"):
        if len(results) >= limit:
            break
        link = block.select_one("a.result__a")
        if link is None:
            continue
        url = unwrap_redirect(str(link.get("href") or ""))
        title = _text(link)
        snippet_tag = block.select_one(".result__snippet")
        snippet = _text(snippet_tag) if snippet_tag is not None else ""
        if not url or not title:
            continue
        results.append((title, url, snippet))
    return results


class DuckDuckGoSearchAdapter(HTTPSearchProvider):
    """Adapter for DuckDuckGo's HTML results page."""

    def __init__(
        self,
        *,
        base_url: str = "https://html.duckduckgo.com",
        timeout: float = 10.0,
        max_results: int = MAX_RESULTS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            base_url,
            timeout=timeout,
            max_results=min(max_results, MAX_RESULTS),
            transport=transport,
        )

    @property
    def source_name(self) -> str:
        return "DuckDuckGo"

    async def search(self, query: str) -> list[EvidenceDocument]:
        """Search the web for ``query``."""
        response = await self._get("/html/", params={"q": query})

        documents: list[EvidenceDocument] = []
        for title, url, snippet in parse_results(response.text, self._max_results):
            doc = self._document(title=title, url=url, snippet=snippet)
            if doc is not None:
                documents.append(doc)

        logger.debug(f"DuckDuckGo returned {len(documents)} documents")
        return documents
