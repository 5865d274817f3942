"""
Prompt Templates
================

System and user prompts for the three reasoning stages: extraction,
adjudication and rewrite. Adjudication and rewrite prompts contain only
the claim and the supplied snippets; no other context is ever sent.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claimcheck.domain.entities import RankedSource, RawClaim

EXTRACTION_SYSTEM = """You are a claim extraction engine.
Your job is to identify discrete factual assertions in text.

Rules:
- Extract ONLY factual assertions. Ignore opinions, rhetorical questions,
  hedged statements, and subjective evaluations.
- Do NOT assess whether claims are true or false. Only extract them.
- Extract 1-3 claims per paragraph.
- Copy the sentence containing each claim verbatim into "original_text".
- Output valid JSON only. No markdown, no explanation."""

VERDICT_SYSTEM = """You are a fact-checking assistant.
You evaluate claims using ONLY the provided source snippets.

Rules:
- Use ONLY the provided source snippets. Do NOT rely on your training data
  or any external knowledge.
- If the sources support the core assertion, verdict is "supported".
- If the claim exaggerates or uses absolutes not supported by the sources,
  verdict is "overstated".
- If the sources contradict the claim or conflict with each other, verdict
  is "disputed"; cite both sides.
- If no source addresses the core assertion, verdict MUST be "unclear".
- Explanation must be 1-3 sentences in plain language.
- Output valid JSON only. No markdown, no text outside the JSON."""

REWRITE_SYSTEM = """You are a factual rewrite assistant.
You revise sentences so that they are supported by the provided sources.

Rules:
- Remove or soften absolutes ("all", "never", "always") where evidence is partial.
- Do NOT introduce any factual claim that is not present in the provided sources.
- Hedge date/number conflicts ("around", "approximately", "in the early").
- Keep the original sentence's style and reading level.
- Output valid JSON only."""


def build_extraction_prompt(text: str, max_claims: int) -> str:
    """User prompt asking for up to ``max_claims`` claim objects."""
    return f"""Extract up to {max_claims} factual claims from the following text.
Return a JSON object with a "claims" array.

Each claim object must have:
- "subject": the entity the claim is about
- "predicate": what is being asserted
- "numbers": any specific numbers mentioned (or null)
- "dates": any specific dates mentioned (or null)
- "original_text": the exact sentence from the text containing the claim
- "span_start": character offset where that sentence starts
- "span_end": character offset where that sentence ends

TEXT:
{text}"""


def _claim_line(claim: RawClaim) -> str:
    line = claim.original_text
    if claim.numbers:
        line += f" (numbers: {claim.numbers})"
    if claim.dates:
        line += f" (dates: {claim.dates})"
    return line


def build_verdict_prompt(claim: RawClaim, sources: Sequence[RankedSource]) -> str:
    """User prompt presenting the claim and the ranked snippets."""
    source_list = "\n\n".join(
        f'[Source {i} | ID: {s.id} | Tier {s.tier}] "{s.title}"\nSnippet: {s.snippet}'
        for i, s in enumerate(sources, start=1)
    )
    return f"""Evaluate this claim using ONLY the provided sources.

CLAIM: {_claim_line(claim)}

SOURCES:
{source_list}

Return a JSON object with:
- "verdict": one of "supported", "overstated", "disputed", "unclear"
- "explanation": 1-3 sentence plain-language explanation
- "source_ids": array of source IDs that informed your verdict"""


def build_rewrite_prompt(original_text: str, sources: Sequence[RankedSource]) -> str:
    """User prompt asking for 1-2 evidence-aligned rewordings."""
    source_list = "\n\n".join(
        f'[Source {i}] "{s.title}"\nSnippet: {s.snippet}' for i, s in enumerate(sources, start=1)
    )
    return f"""Rewrite this sentence to be accurately supported by the provided sources.

ORIGINAL: {original_text}

SOURCES:
{source_list}

Return a JSON object with a "rewrites" array containing 1-2 objects, each with:
- "text": the revised sentence
- "confidence": 0.0-1.0 confidence that the rewrite is well-supported"""
