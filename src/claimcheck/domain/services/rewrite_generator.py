"""
Rewrite Generator
=================

Proposes evidence-aligned rewordings for claims judged overstated or
disputed. Other verdicts never trigger a model call.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from claimcheck.domain.entities import Rewrite
from claimcheck.domain.payloads import RewritePayload
from claimcheck.domain.prompts import REWRITE_SYSTEM, build_rewrite_prompt

if TYPE_CHECKING:
    from claimcheck.domain.entities import RankedSource, Verdict
    from claimcheck.domain.services.reasoning_gateway import ReasoningGateway

logger = logging.getLogger(__name__)

MAX_REWRITES = 2


class RewriteGenerator:
    """Generates 1-2 candidate rewordings with confidence scores."""

    def __init__(self, gateway: ReasoningGateway, *, max_tokens: int = 300) -> None:
        self._gateway = gateway
        self._max_tokens = max_tokens

    async def generate(
        self,
        original_text: str,
        verdict: Verdict,
        sources: Sequence[RankedSource],
    ) -> list[Rewrite]:
        """
        Propose rewordings of ``original_text``.

        Returns:
            Empty list unless the verdict is overstated/disputed and there
            is at least one source to align with.

        Raises:
            ParseError: If the model output is malformed.
            UpstreamUnavailable: If no backend answered.
        """
        if not verdict.needs_rewrite or not sources:
            return []

        payload = await self._gateway.call_json(
            build_rewrite_prompt(original_text, sources),
            RewritePayload,
            system=REWRITE_SYSTEM,
            max_tokens=self._max_tokens,
            list_key="rewrites",
        )

        original = original_text.strip().casefold()
        rewrites: list[Rewrite] = []
        for candidate in payload.rewrites:
            text = candidate.text.strip()
            if not text or text.casefold() == original:
                continue
            if any(r.text.casefold() == text.casefold() for r in rewrites):
                continue
            rewrites.append(Rewrite(text=text, confidence=candidate.confidence))
            if len(rewrites) >= MAX_REWRITES:
                break

        if not rewrites:
            logger.debug("Rewrite call returned no usable candidates")
        return rewrites
