"""
Content Filter
==============

Screens request text before it reaches the pipeline.
"""

from __future__ import annotations

import logging
import re

from claimcheck.domain.errors import InputValidationError

logger = logging.getLogger(__name__)

BLOCKED_MESSAGE = (
    "Your input contains content that cannot be processed. Please revise and try again."
)

BLOCKED_INPUT_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Prompt injection
    re.compile(r"ignore\s+(all\s+)?previous\s+instructions", re.IGNORECASE),
    re.compile(r"you\s+are\s+now\s+(?:a|an)\s+(?:unrestricted|jailbroken)", re.IGNORECASE),
    re.compile(r"system\s*:\s*you\s+are", re.IGNORECASE),
    re.compile(r"\bDAN\s+mode\b", re.IGNORECASE),
    # Script injection
    re.compile(r"<script[\s>]", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"on(?:load|error|click)\s*=", re.IGNORECASE),
    # SQL injection
    re.compile(r"(?:union\s+select|drop\s+table|;\s*delete\s+from)", re.IGNORECASE),
)


def find_blocked_pattern(text: str) -> str | None:
    """Return the first blocked pattern matching ``text``, if any."""
    for pattern in BLOCKED_INPUT_PATTERNS:
        if pattern.search(text):
            return pattern.pattern
    return None


def ensure_allowed(text: str) -> None:
    """
    Reject text matching a blocked pattern.

    Raises:
        InputValidationError: With a generic public message.
    """
    matched = find_blocked_pattern(text)
    if matched is not None:
        logger.warning("Blocked request text matching pattern %r", matched)
        raise InputValidationError(
            f"input matched blocked pattern {matched!r}",
            public_message=BLOCKED_MESSAGE,
        )
