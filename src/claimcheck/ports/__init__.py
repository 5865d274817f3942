"""
Ports Layer (Hexagonal Architecture)
====================================

Abstract interfaces defining the contracts between the pipeline core
and external systems. These are the "ports" that adapters plug into.

Secondary Ports (driven):
- LLMProvider: One text-generation backend
- EvidenceProvider: Web search
- CacheProvider: Key/value store with TTL
- PageMetadataProvider: Citation metadata for a URL
- IdentityProvider / HistoryRecorder: External collaborators
"""

from claimcheck.ports.cache import CacheProvider
from claimcheck.ports.collaborators import (
    HistoryEntry,
    HistoryRecorder,
    IdentityProvider,
    UserProfile,
)
from claimcheck.ports.evidence_provider import EvidenceProvider
from claimcheck.ports.llm_provider import LLMMessage, LLMProvider, LLMResponse
from claimcheck.ports.page_metadata import PageMetadataProvider

__all__ = [
    "CacheProvider",
    "EvidenceProvider",
    "HistoryEntry",
    "HistoryRecorder",
    "IdentityProvider",
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "PageMetadataProvider",
    "UserProfile",
]
