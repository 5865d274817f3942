"""
External Collaborator Ports
===========================

Narrow interfaces to the identity and history systems that live outside
the verification core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Caller identity plus the preferences used to fill request defaults."""

    user_id: str
    citation_style_preference: str | None = None
    max_claims_preference: int | None = None


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record handed to the history collaborator after a completed run."""

    user_id: str | None
    type: Literal["analyze", "review"]
    input_snippet: str
    result_json: str
    claim_count: int


class IdentityProvider(ABC):
    """Port resolving an optional caller profile from request credentials."""

    @abstractmethod
    async def resolve(self, authorization: str | None) -> UserProfile | None:
        """
        Resolve the caller.

        Args:
            authorization: Raw ``Authorization`` header value, if any.

        Returns:
            The caller's profile, or None for anonymous callers.
        """
        ...


class HistoryRecorder(ABC):
    """Port recording completed checks. Calls are fire-and-forget."""

    @abstractmethod
    async def record(self, entry: HistoryEntry) -> None:
        """Persist one history entry."""
        ...
