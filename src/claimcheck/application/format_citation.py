"""
CitationLookupService
=====================

Formats a citation for an arbitrary URL: metadata is read from the page
(cached for a day) and rendered by the pure citation formatter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from pydantic import BaseModel

from claimcheck.domain.entities import CitationFormat, CitationStyle, SourceMetadata
from claimcheck.domain.errors import InputValidationError
from claimcheck.domain.services.citation_formatter import render_citation

if TYPE_CHECKING:
    from claimcheck.domain.services.result_cache import ResultCache
    from claimcheck.ports.page_metadata import PageMetadataProvider

logger = logging.getLogger(__name__)


class FormattedCitation(BaseModel):
    """Rendered citation; the form not requested is an empty string."""

    citation_inline: str
    citation_bibliography: str
    metadata_used: SourceMetadata

    model_config = {"frozen": True}


class CitationLookupService:
    """Looks up page metadata and formats it as a citation."""

    def __init__(self, fetcher: PageMetadataProvider, cache: ResultCache) -> None:
        self._fetcher = fetcher
        self._cache = cache

    @staticmethod
    def _check_url(url: str) -> str:
        url = url.strip()
        parts = urlsplit(url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InputValidationError(
                f"not an http(s) URL: {url!r}",
                public_message="sourceUrl must be an absolute http(s) URL",
            )
        return url

    async def metadata_for(self, url: str) -> SourceMetadata:
        """Cached page metadata for ``url``."""
        url = self._check_url(url)
        cached = await self._cache.get_source_metadata(url)
        if cached is not None:
            return cached

        metadata = await self._fetcher.fetch(url)
        await self._cache.set_source_metadata(url, metadata)
        return metadata

    async def format_from_url(
        self,
        url: str,
        style: CitationStyle,
        fmt: CitationFormat = CitationFormat.BOTH,
    ) -> FormattedCitation:
        """
        Render a citation for ``url``.

        Raises:
            InputValidationError: If ``url`` is not an absolute http(s) URL.
        """
        metadata = await self.metadata_for(url)
        citation = render_citation(metadata, style)
        fmt = CitationFormat(fmt)
        return FormattedCitation(
            citation_inline="" if fmt is CitationFormat.BIBLIOGRAPHY else citation.inline,
            citation_bibliography="" if fmt is CitationFormat.INLINE else citation.bibliography,
            metadata_used=metadata,
        )
