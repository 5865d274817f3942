"""
EvidenceProvider Port
=====================

Abstract interface for a web-search backend returning candidate documents.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claimcheck.domain.entities import EvidenceDocument


class EvidenceProvider(ABC):
    """
    Port for evidence retrieval.

    Each ``search`` is a single external call with its own timeout.
    Failures propagate as UpstreamUnavailable / UpstreamTimeout for that
    call only; callers decide how to isolate them.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Human-readable name of this provider."""
        ...

    @abstractmethod
    async def search(self, query: str) -> list[EvidenceDocument]:
        """
        Search for documents relevant to a claim.

        Args:
            query: Claim text used as the search query.

        Returns:
            Raw candidate documents, best-first as reported by the backend.

        Raises:
            UpstreamUnavailable: If the backend failed.
            UpstreamTimeout: If the backend did not answer in time.
        """
        ...

    @property
    def timeout_budget_seconds(self) -> float | None:
        """
        Longest a single ``search`` may take, including any fallbacks.

        None means the provider sets no limit of its own.
        """
        return None

    async def connect(self) -> None:
        """Open network resources. Default is a no-op."""
        return None

    async def disconnect(self) -> None:
        """Release network resources. Default is a no-op."""
        return None
