"""
HTTP Page Metadata Adapter
==========================

Fetches a page and reads its ``<title>`` and author/date/publisher
``<meta>`` tags for citation formatting.
"""

from __future__ import annotations

import logging
import re

import httpx
from bs4 import BeautifulSoup

from claimcheck.adapters.outbound.search_base import domain_of
from claimcheck.domain.entities import SourceMetadata
from claimcheck.ports.page_metadata import PageMetadataProvider

logger = logging.getLogger(__name__)

USER_AGENT = "ClaimCheck Citation Bot/1.0"
MAX_BODY_CHARS = 500_000

_AUTHOR = re.compile(r"author|article:author", re.IGNORECASE)
_DATE = re.compile(r"date|article:published_time|datePublished", re.IGNORECASE)
_PUBLISHER = re.compile(r"og:site_name|publisher", re.IGNORECASE)


def _clean(value: str) -> str | None:
    return " ".join(value.split()) or None


def _meta(soup: BeautifulSoup, pattern: re.Pattern[str]) -> str | None:
    """First non-empty ``content`` of a meta tag whose name or property matches."""
    for tag in soup.find_all("meta", attrs={"content": True}):
        key = str(tag.get("name") or tag.get("property") or "")
        if not pattern.fullmatch(key):
            continue
        value = _clean(str(tag.get("content") or ""))
        if value:
            return value
    return None


def parse_page_metadata(url: str, page: str) -> SourceMetadata:
    """Build metadata from a page body; missing fields fall back to the domain."""
    domain = domain_of(url)
    soup = BeautifulSoup(page, "html.parser")
    title = _clean(soup.title.get_text()) if soup.title is not None else None
    return SourceMetadata(
        title=title or domain or url,
        url=url,
        author=_meta(soup, _AUTHOR),
        publisher=_meta(soup, _PUBLISHER) or domain or None,
        date=_meta(soup, _DATE),
        domain=domain or None,
    )


class HTTPPageMetadataAdapter(PageMetadataProvider):
    """Reads citation metadata over HTTP with a short timeout."""

    def __init__(
        self,
        *,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
            transport=transport,
        )

    async def fetch(self, url: str) -> SourceMetadata:
        try:
            page = await self._read_page(url)
        except httpx.HTTPError as e:
            logger.info(f"Metadata fetch failed for {url}: {e}")
            page = ""
        return parse_page_metadata(url, page)

    async def _read_page(self, url: str) -> str:
        """Read at most MAX_BODY_CHARS of the body; the rest is never downloaded."""
        chunks: list[str] = []
        size = 0
        async with self._client.stream("GET", url) as response:
            async for chunk in response.aiter_text():
                chunks.append(chunk)
                size += len(chunk)
                if size >= MAX_BODY_CHARS:
                    break
        return "".join(chunks)[:MAX_BODY_CHARS]

    async def close(self) -> None:
        await self._client.aclose()
