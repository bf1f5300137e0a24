"""Tolerant JSON extraction from free-form LLM output.

Recovers one JSON object from text that may carry code fences, narrative
padding before/after the object, raw control characters, or trailing
commas. It does not validate fields; callers apply their own defaults.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from brandpulse.core.exceptions import JSONParseError, NoJSONFound

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_WHITESPACE_RUN = re.compile(r"\s+")
# C0 and C1 control characters (whitespace ones are already collapsed by then)
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")


def _candidate(raw_text: str) -> str:
    fenced = _FENCED_JSON.search(raw_text)
    text = fenced.group(1) if fenced else raw_text

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise NoJSONFound()
    return text[start : end + 1]


def clean_json_text(candidate: str) -> str:
    cleaned = _WHITESPACE_RUN.sub(" ", candidate)
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = _TRAILING_COMMA.sub(r"\1", cleaned)
    return cleaned.strip()


def extract_json(raw_text: str) -> dict[str, Any]:
    """Return the JSON object embedded in ``raw_text``.

    Raises:
        NoJSONFound: no ``{...}`` pair in the text.
        JSONParseError: a candidate was found but does not parse even after cleanup.
    """
    if not raw_text:
        raise NoJSONFound("Empty response")

    candidate = _candidate(raw_text)

    # Well-formed candidates are returned untouched so string values keep their spacing
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError:
        cleaned = clean_json_text(candidate)
        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.debug("JSON cleanup failed: %s | candidate=%.200s", e, cleaned)
            raise JSONParseError(str(e)) from e

    if not isinstance(data, dict):
        raise JSONParseError(f"expected a JSON object, got {type(data).__name__}")
    return data


def extract_to_string(obj: dict[str, Any]) -> str:
    return json.dumps(obj, ensure_ascii=False)
