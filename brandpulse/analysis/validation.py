"""Content checks applied to provider output before it is trusted.

The refusal/error denylist lives here and only here, so the policy can be
audited and extended in one place.
"""

from __future__ import annotations

import re

from brandpulse.core.exceptions import InsufficientGeneration, InvalidAnalysisResponse

MIN_GENERATED_LENGTH = 50
MIN_ANALYSIS_LENGTH = 50

# Lowercase substrings. A match means the model refused or leaked an error.
ERROR_PHRASES: tuple[str, ...] = (
    "i cannot",
    "i'm unable",
    "i don't have access",
    "i cannot provide",
    "i'm sorry",
    "error occurred",
    "something went wrong",
)

_THINK_PATTERN = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
_TYPOGRAPHIC_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})


def strip_reasoning_blocks(text: str) -> str:
    """Remove <think>...</think> sections emitted by reasoning models."""
    return _THINK_PATTERN.sub("", text).strip()


def find_error_phrase(text: str) -> str | None:
    """Return the first denylisted phrase found in ``text``, if any."""
    normalized = text.translate(_TYPOGRAPHIC_APOSTROPHES).lower()
    for phrase in ERROR_PHRASES:
        if phrase in normalized:
            return phrase
    return None


def validate_generated_content(text: str) -> str:
    """Return the usable generated text or raise InsufficientGeneration."""
    cleaned = strip_reasoning_blocks(text or "")
    if len(cleaned) < MIN_GENERATED_LENGTH:
        raise InsufficientGeneration(len(cleaned), MIN_GENERATED_LENGTH)
    return cleaned


def validate_analysis_response(text: str) -> None:
    if not text or not text.strip():
        raise InvalidAnalysisResponse("empty response")
    if len(text) < MIN_ANALYSIS_LENGTH:
        raise InvalidAnalysisResponse(f"response too short ({len(text)} chars)")
    if "{" not in text or "}" not in text:
        raise InvalidAnalysisResponse("response contains no JSON braces")
    phrase = find_error_phrase(text)
    if phrase is not None:
        raise InvalidAnalysisResponse(f"refusal or error phrase detected: {phrase!r}")
