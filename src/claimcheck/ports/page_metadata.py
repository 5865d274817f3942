"""
PageMetadataProvider Port
=========================

Abstract interface for reading bibliographic metadata from a web page.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claimcheck.domain.entities import SourceMetadata


class PageMetadataProvider(ABC):
    """Port for fetching citation metadata for a URL."""

    @abstractmethod
    async def fetch(self, url: str) -> SourceMetadata:
        """
        Read title/author/publisher/date for ``url``.

        Implementations never raise for fetch or parse problems; they fall
        back to metadata derived from the URL's domain.
        """
        ...

    async def close(self) -> None:
        """Release network resources. Default is a no-op."""
        return None
