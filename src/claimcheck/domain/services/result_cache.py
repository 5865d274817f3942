"""
Result Cache
============

Memoizes expensive pipeline stages on top of a CacheProvider.

Keys are a namespace plus the first 32 hex chars of a sha256 over the
normalized semantic inputs. Cache problems are never fatal: every
CacheFailure is logged and turned into a miss (reads) or a no-op (writes).
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from claimcheck.domain.entities import (
    CitationStyle,
    EvidenceDocument,
    ProcessedClaim,
    SourceMetadata,
)
from claimcheck.domain.errors import CacheFailure
from claimcheck.domain.results import PipelineResult

if TYPE_CHECKING:
    from claimcheck.ports.cache import CacheProvider

logger = logging.getLogger(__name__)

CLAIM_PREFIX = "claim:v1:"
SEARCH_PREFIX = "search:v1:"
REQUEST_PREFIX = "analyze:v1:"
SOURCE_METADATA_PREFIX = "srcmeta:v1:"

_DOCUMENTS = TypeAdapter(list[EvidenceDocument])

ModelT = TypeVar("ModelT", bound=BaseModel)


def normalize_text(text: str) -> str:
    """Lowercase and collapse whitespace."""
    return " ".join(text.lower().split())


def _digest(*parts: str) -> str:
    payload = "\x1f".join(parts).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()[:32]


def claim_key(claim_text: str, style: CitationStyle) -> str:
    return f"{CLAIM_PREFIX}{_digest(normalize_text(claim_text), str(style))}"


def request_key(text: str, style: CitationStyle) -> str:
    return f"{REQUEST_PREFIX}{_digest(text.strip(), str(style))}"


def search_key(query: str) -> str:
    return f"{SEARCH_PREFIX}{_digest(normalize_text(query))}"


def source_metadata_key(url: str) -> str:
    return f"{SOURCE_METADATA_PREFIX}{_digest(url.strip())}"


class ResultCache:
    """
    Namespaced, typed access to the cache backing store.

    Concurrent writes to the same key are last-writer-wins; values for a
    key are derived deterministically from the same inputs.
    """

    def __init__(
        self,
        provider: CacheProvider,
        *,
        claim_ttl_seconds: int = 7 * 24 * 3600,
        search_ttl_seconds: int = 3600,
        source_metadata_ttl_seconds: int = 24 * 3600,
        request_ttl_seconds: int = 4 * 24 * 3600,
    ) -> None:
        self._provider = provider
        self._claim_ttl = claim_ttl_seconds
        self._search_ttl = search_ttl_seconds
        self._source_metadata_ttl = source_metadata_ttl_seconds
        self._request_ttl = request_ttl_seconds

    @property
    def provider(self) -> CacheProvider:
        return self._provider

    async def _read(self, key: str) -> Any | None:
        try:
            return await self._provider.get(key)
        except CacheFailure as e:
            logger.warning(f"Cache read failed for {key}: {e}")
        except Exception as e:
            logger.error(f"Unexpected cache read error for {key}: {e}")
        return None

    async def _write(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self._provider.set(key, value, ttl_seconds)
        except CacheFailure as e:
            logger.warning(f"Cache write failed for {key}: {e}")
        except Exception as e:
            logger.error(f"Unexpected cache write error for {key}: {e}")

    async def _read_model(self, key: str, model: type[ModelT]) -> ModelT | None:
        data = await self._read(key)
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding invalid cache entry {key}: {e.error_count()} error(s)")
            await self.invalidate(key)
            return None

    async def invalidate(self, key: str) -> bool:
        """Remove a raw key; False when missing or the backend failed."""
        try:
            return await self._provider.delete(key)
        except CacheFailure as e:
            logger.warning(f"Cache delete failed for {key}: {e}")
            return False

    # -------------------------------------------------------------------------
    # Claim-level results
    # -------------------------------------------------------------------------

    async def get_claim(self, claim_text: str, style: CitationStyle) -> ProcessedClaim | None:
        return await self._read_model(claim_key(claim_text, style), ProcessedClaim)

    async def set_claim(self, claim_text: str, style: CitationStyle, claim: ProcessedClaim) -> None:
        await self._write(claim_key(claim_text, style), claim.model_dump(mode="json"), self._claim_ttl)

    # -------------------------------------------------------------------------
    # Whole-request results
    # -------------------------------------------------------------------------

    async def get_request(self, text: str, style: CitationStyle) -> PipelineResult | None:
        return await self._read_model(request_key(text, style), PipelineResult)

    async def set_request(self, text: str, style: CitationStyle, result: PipelineResult) -> None:
        await self._write(request_key(text, style), result.model_dump(mode="json"), self._request_ttl)

    # -------------------------------------------------------------------------
    # Search results and source metadata
    # -------------------------------------------------------------------------

    async def get_search(self, query: str) -> list[EvidenceDocument] | None:
        key = search_key(query)
        data = await self._read(key)
        if data is None:
            return None
        try:
            return _DOCUMENTS.validate_python(data)
        except ValidationError:
            logger.warning(f"Discarding invalid search cache entry {key}")
            await self.invalidate(key)
            return None

    async def set_search(self, query: str, documents: list[EvidenceDocument]) -> None:
        await self._write(
            search_key(query),
            _DOCUMENTS.dump_python(documents, mode="json"),
            self._search_ttl,
        )

    async def get_source_metadata(self, url: str) -> SourceMetadata | None:
        return await self._read_model(source_metadata_key(url), SourceMetadata)

    async def set_source_metadata(self, url: str, metadata: SourceMetadata) -> None:
        await self._write(
            source_metadata_key(url),
            metadata.model_dump(mode="json"),
            self._source_metadata_ttl,
        )

    async def health_check(self) -> bool:
        try:
            return await self._provider.health_check()
        except Exception as e:
            logger.warning(f"Cache health check failed: {e}")
            return False
