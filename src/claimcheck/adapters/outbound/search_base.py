"""
Base HTTP Search Provider
=========================

Shared HTTP client handling for web-search evidence providers.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any
from urllib.parse import urlsplit

import httpx

from claimcheck.domain.entities import EvidenceDocument
from claimcheck.domain.errors import UpstreamTimeout, UpstreamUnavailable
from claimcheck.ports.evidence_provider import EvidenceProvider

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; ClaimCheck/0.1; fact-checking research bot)"


def domain_of(url: str) -> str:
    """Hostname of ``url`` without a leading ``www.``; empty if unparseable."""
    try:
        host = urlsplit(url).hostname or ""
    except ValueError:
        return ""
    return host.lower().removeprefix("www.")


class HTTPSearchProvider(EvidenceProvider):
    """
    Abstract base class for HTTP-based search backends.

    Provides common HTTP client functionality and connection pooling, and
    maps transport failures onto the domain upstream errors.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        max_results: int = 10,
        max_connections: int = 10,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the search provider.

        Args:
            base_url: Base URL for the API.
            timeout: Request timeout in seconds.
            max_results: Maximum documents returned per search.
            max_connections: Maximum concurrent connections.
            user_agent: User-Agent header for requests.
            transport: Optional transport override (tests).
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._max_results = max_results
        self._user_agent = user_agent
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max(1, max_connections // 2),
        )

    @property
    @abstractmethod
    def source_name(self) -> str: ...

    @property
    def timeout_budget_seconds(self) -> float:
        return self._timeout

    def _default_headers(self) -> dict[str, str]:
        return {"User-Agent": self._user_agent}

    async def connect(self) -> None:
        """Initialize the HTTP client."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            limits=self._limits,
            headers=self._default_headers(),
            follow_redirects=True,
            transport=self._transport,
        )
        logger.info(f"{self.source_name} search ready: {self._base_url}")

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info(f"{self.source_name} disconnected")

    async def _get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Make a GET request.

        Raises:
            UpstreamTimeout: On any httpx timeout.
            UpstreamUnavailable: On transport errors and non-2xx responses.
        """
        if self._client is None:
            await self.connect()
        client = self._client
        if client is None:
            raise RuntimeError(f"{self.source_name} client is not connected")

        try:
            response = await client.get(path, params=params, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning(f"{self.source_name} search timed out after {self._timeout}s")
            raise UpstreamTimeout(f"{self.source_name} timed out") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"{self.source_name} search returned HTTP {status}")
            raise UpstreamUnavailable(
                f"{self.source_name} returned HTTP {status}",
                errors={self.source_name: f"HTTP {status}"},
            ) from e
        except httpx.HTTPError as e:
            logger.warning(f"{self.source_name} search failed: {e}")
            raise UpstreamUnavailable(
                f"{self.source_name} request failed",
                errors={self.source_name: str(e)},
            ) from e
        return response

    def _document(
        self,
        *,
        title: str,
        url: str,
        snippet: str,
        date_published: str | None = None,
    ) -> EvidenceDocument | None:
        domain = domain_of(url)
        if not url or not domain:
            return None
        return EvidenceDocument(
            title=title,
            url=url,
            snippet=snippet,
            domain=domain,
            date_published=date_published,
        )

    @abstractmethod
    async def search(self, query: str) -> list[EvidenceDocument]: ...
