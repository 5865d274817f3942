"""
Model Output Payloads
=====================

Schemas for the JSON documents the reasoning backends are asked to
produce. Every model response is validated against one of these before
any field is used; a failure becomes a ParseError.
"""

from __future__ import annotations

import json
import re
from typing import Annotated, Any, TypeVar

from pydantic import BaseModel, BeforeValidator, Field, ValidationError, field_validator

from claimcheck.domain.entities import Verdict
from claimcheck.domain.errors import ParseError

PayloadT = TypeVar("PayloadT", bound=BaseModel)

_FENCE_OPEN = re.compile(r"^\s*```(?:json)?[ \t]*\n?", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?[ \t]*```\s*$")

# Vocabulary drift observed across model generations and prompt versions.
VERDICT_ALIASES: dict[str, Verdict] = {
    "supported": Verdict.SUPPORTED,
    "broadly_supported": Verdict.SUPPORTED,
    "overstated": Verdict.OVERSTATED,
    "disputed": Verdict.DISPUTED,
    "contested": Verdict.DISPUTED,
    "refuted": Verdict.DISPUTED,
    "unclear": Verdict.UNCLEAR,
}


def _coerce_optional_str(value: Any) -> str | None:
    # Models sometimes return numbers/dates as bare JSON numbers or lists
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, list):
        parts = [str(v) for v in value if v is not None and str(v).strip()]
        return ", ".join(parts) or None
    text = str(value).strip()
    return text or None


def _coerce_str(value: Any) -> str:
    return _coerce_optional_str(value) or ""


def _coerce_offset(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


OptionalText = Annotated[str | None, BeforeValidator(_coerce_optional_str)]
Text = Annotated[str, BeforeValidator(_coerce_str)]
Offset = Annotated[int | None, BeforeValidator(_coerce_offset)]


class ExtractedClaimPayload(BaseModel):
    """One claim object in an extraction response."""

    subject: Text = ""
    predicate: Text = ""
    numbers: OptionalText = None
    dates: OptionalText = None
    original_text: Text = ""
    span_start: Offset = None
    span_end: Offset = None

    model_config = {"extra": "ignore"}


class ExtractionPayload(BaseModel):
    """Extraction response: ``{"claims": [...]}``."""

    claims: list[ExtractedClaimPayload] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class VerdictPayload(BaseModel):
    """Adjudication response: ``{"verdict", "explanation", "source_ids"}``."""

    verdict: Verdict
    explanation: Text = ""
    source_ids: list[str] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("verdict", mode="before")
    @classmethod
    def _normalize_verdict(cls, value: Any) -> Verdict:
        key = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        if key not in VERDICT_ALIASES:
            raise ValueError(f"unknown verdict {value!r}")
        return VERDICT_ALIASES[key]

    @field_validator("source_ids", mode="before")
    @classmethod
    def _stringify_ids(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("source_ids must be a list")
        return [str(v) for v in value]


class RewriteCandidatePayload(BaseModel):
    """One rewrite candidate."""

    text: Text
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    model_config = {"extra": "ignore"}


class RewritePayload(BaseModel):
    """Rewrite response: ``{"rewrites": [{"text", "confidence"}]}``."""

    rewrites: list[RewriteCandidatePayload] = Field(default_factory=list)

    model_config = {"extra": "ignore"}

    @field_validator("rewrites", mode="before")
    @classmethod
    def _accept_bare_strings(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"text": v} if isinstance(v, str) else v for v in value]
        return value


def strip_code_fences(raw: str) -> str:
    """Remove a surrounding markdown code fence from a model response."""
    cleaned = _FENCE_OPEN.sub("", raw, count=1)
    cleaned = _FENCE_CLOSE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_payload(raw: str, schema: type[PayloadT], *, list_key: str | None = None) -> PayloadT:
    """
    Deserialize and validate a model response.

    Args:
        raw: Raw text returned by the backend.
        schema: Payload model to validate against.
        list_key: When the model returns a bare JSON array, wrap it under
            this key before validation.

    Returns:
        The validated payload.

    Raises:
        ParseError: If the response is not valid JSON or violates the schema.
    """
    cleaned = strip_code_fences(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ParseError(f"Model response is not valid JSON: {e}", raw=raw) from e

    if isinstance(data, list) and list_key is not None:
        data = {list_key: data}
    if not isinstance(data, dict):
        raise ParseError(
            f"Model response must be a JSON object, got {type(data).__name__}", raw=raw
        )

    try:
        return schema.model_validate(data)
    except ValidationError as e:
        raise ParseError(
            f"Model response failed {schema.__name__} validation: {e.error_count()} error(s)",
            raw=raw,
        ) from e
