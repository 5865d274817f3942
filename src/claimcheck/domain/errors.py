"""
Domain Errors
=============

Error taxonomy shared by every layer of the pipeline.

Propagation rules:
- InputValidationError aborts the request before the pipeline starts.
- ParseError / UpstreamTimeout / UpstreamUnavailable abort the request
  during claim extraction, but only downgrade a single claim afterwards.
- CacheFailure never reaches the caller.
"""

from __future__ import annotations


class ClaimCheckError(Exception):
    """Base class for all pipeline errors."""

    #: Message that is safe to show to API consumers.
    public_message = "An internal error occurred"


class InputValidationError(ClaimCheckError):
    """Malformed, oversized or blocked request input."""

    public_message = "Invalid request"

    def __init__(self, message: str, *, public_message: str | None = None) -> None:
        super().__init__(message)
        if public_message is not None:
            self.public_message = public_message


class ParseError(ClaimCheckError):
    """Upstream model returned unparsable or schema-invalid content."""

    public_message = "Service temporarily unavailable. Please try again."

    def __init__(self, message: str, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class UpstreamError(ClaimCheckError):
    """Base class for failures talking to an upstream network service."""

    public_message = "Service temporarily unavailable. Please try again."


class UpstreamTimeout(UpstreamError):
    """An upstream call did not answer within its deadline."""


class UpstreamUnavailable(UpstreamError):
    """Every configured backend for an upstream call is exhausted."""

    def __init__(self, message: str, *, errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.errors: dict[str, str] = dict(errors or {})


class CacheFailure(ClaimCheckError):
    """Cache backend error. Always swallowed and logged by ResultCache."""
