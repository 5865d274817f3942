"""
Verdict Adjudicator
===================

Classifies a claim against its ranked evidence.
The model only ever sees the claim and the supplied snippets.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from claimcheck.domain.entities import Verdict
from claimcheck.domain.payloads import VerdictPayload
from claimcheck.domain.prompts import VERDICT_SYSTEM, build_verdict_prompt

if TYPE_CHECKING:
    from claimcheck.domain.entities import RankedSource, RawClaim
    from claimcheck.domain.services.reasoning_gateway import ReasoningGateway

logger = logging.getLogger(__name__)

NO_EVIDENCE_EXPLANATION = (
    "No reliable sources were found for this claim. Consider consulting "
    "textbooks, scholarly databases, or a librarian for verification."
)


@dataclass(frozen=True, slots=True)
class Adjudication:
    """Outcome of adjudicating one claim."""

    verdict: Verdict
    explanation: str
    source_ids: list[str] = field(default_factory=list)


class VerdictAdjudicator:
    """Adjudicates a claim using only the provided sources."""

    def __init__(
        self,
        gateway: ReasoningGateway,
        *,
        max_sources: int = 6,
        max_tokens: int = 500,
    ) -> None:
        self._gateway = gateway
        self._max_sources = max_sources
        self._max_tokens = max_tokens

    async def adjudicate(self, claim: RawClaim, sources: Sequence[RankedSource]) -> Adjudication:
        """
        Produce a verdict for ``claim``.

        No evidence means no judgment: an empty source list short-circuits
        to ``unclear`` without calling the gateway.

        Raises:
            ParseError: If the model output is malformed.
            UpstreamUnavailable: If no backend answered.
        """
        if not sources:
            return Adjudication(verdict=Verdict.UNCLEAR, explanation=NO_EVIDENCE_EXPLANATION)

        shown = list(sources)[: self._max_sources]
        payload = await self._gateway.call_json(
            build_verdict_prompt(claim, shown),
            VerdictPayload,
            system=VERDICT_SYSTEM,
            max_tokens=self._max_tokens,
        )

        known_ids = {s.id for s in shown}
        cited = [sid for sid in payload.source_ids if sid in known_ids]
        if len(cited) != len(payload.source_ids):
            logger.debug(
                f"Dropped {len(payload.source_ids) - len(cited)} unknown source id(s) from verdict"
            )

        explanation = payload.explanation.strip()
        if not explanation:
            explanation = f"Verdict based on {len(shown)} retrieved source(s)."

        return Adjudication(verdict=payload.verdict, explanation=explanation, source_ids=cited)
