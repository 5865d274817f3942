"""
Claim Risk Scorer
=================

Heuristic, evidence-free risk estimate for a claim sentence. Used by the
document review flow to surface sentences worth checking first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum


class RiskSignal(StrEnum):
    SUPERLATIVE = "superlative"
    SPECIFIC_NUMBER = "specific_number"
    SPECIFIC_DATE = "specific_date"
    STATISTICAL_ASSERTION = "statistical_assertion"
    NO_CITATION = "no_citation"


class RiskLabel(StrEnum):
    LIKELY_OVERSTATED = "likely_overstated"
    NEEDS_REVIEW = "needs_review"
    LIKELY_OK = "likely_ok"


SIGNAL_WEIGHTS: dict[RiskSignal, float] = {
    RiskSignal.SUPERLATIVE: 0.3,
    RiskSignal.SPECIFIC_NUMBER: 0.2,
    RiskSignal.SPECIFIC_DATE: 0.15,
    RiskSignal.STATISTICAL_ASSERTION: 0.25,
    RiskSignal.NO_CITATION: 0.1,
}

OVERSTATED_THRESHOLD = 0.7
REVIEW_THRESHOLD = 0.4

_SUPERLATIVE = re.compile(
    r"\b(all|every|never|always|none|no one|everyone|best|worst|most|least|"
    r"largest|smallest|greatest|only)\b",
    re.IGNORECASE,
)
_NUMBER = re.compile(r"\b\d[\d,.]*%?")
_DATE = re.compile(
    r"\b(19|20)\d{2}\b|\b(january|february|march|april|may|june|july|august|"
    r"september|october|november|december)\s+\d",
    re.IGNORECASE,
)
_STATISTICAL = re.compile(
    r"\b(percent|percentage|average|median|rate|ratio|statistic|study|survey|"
    r"research shows|data|according to)\b",
    re.IGNORECASE,
)
_CITATION = re.compile(r"\(.*?\d{4}\)|\[\d+\]")


@dataclass(frozen=True, slots=True)
class RiskAssessment:
    score: float
    signals: list[RiskSignal] = field(default_factory=list)

    @property
    def label(self) -> RiskLabel:
        if self.score > OVERSTATED_THRESHOLD:
            return RiskLabel.LIKELY_OVERSTATED
        if self.score > REVIEW_THRESHOLD:
            return RiskLabel.NEEDS_REVIEW
        return RiskLabel.LIKELY_OK


def score_claim_risk(text: str) -> RiskAssessment:
    """Score ``text`` in [0, 1] from surface signals."""
    signals: list[RiskSignal] = []
    if _SUPERLATIVE.search(text):
        signals.append(RiskSignal.SUPERLATIVE)
    if _NUMBER.search(text):
        signals.append(RiskSignal.SPECIFIC_NUMBER)
    if _DATE.search(text):
        signals.append(RiskSignal.SPECIFIC_DATE)
    if _STATISTICAL.search(text):
        signals.append(RiskSignal.STATISTICAL_ASSERTION)
    if not _CITATION.search(text):
        signals.append(RiskSignal.NO_CITATION)

    score = sum(SIGNAL_WEIGHTS[s] for s in signals)
    return RiskAssessment(score=round(min(score, 1.0), 4), signals=signals)
