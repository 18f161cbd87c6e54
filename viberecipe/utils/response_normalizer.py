"""Repair and parse raw Gemini responses into candidate recipe dicts."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from viberecipe.utils.exceptions import ParseError

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def strip_code_fences(text: str) -> str:
    """Remove every ``` / ```json marker, wherever the model put it."""
    return _FENCE.sub("", text or "").strip()


def extract_json_object(text: str) -> Optional[str]:
    """
    Slice from the first '{' to the last '}' inclusive.

    Anything the model said before or after the object is dropped.
    Returns None when there is no such span.
    """
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last == -1 or last < first:
        return None
    return text[first : last + 1]


def _strip_trailing_commas(json_text: str) -> str:
    # Converts: {"a": 1,} -> {"a": 1}
    return _TRAILING_COMMA.sub(r"\1", json_text)


def parse_candidate(raw_text: str) -> Dict[str, Any]:
    """
    Turn a raw model response into a candidate recipe dict.

    Raises:
        ParseError: if no JSON object can be located or it does not parse.
            The raw text is carried on the exception for diagnostics.
    """
    cleaned = strip_code_fences(raw_text)
    json_text = extract_json_object(cleaned)
    if json_text is None:
        raise ParseError("No JSON object found in model response", raw_text=raw_text)

    try:
        data = json.loads(json_text)
    except json.JSONDecodeError:
        try:
            data = json.loads(_strip_trailing_commas(json_text))
        except json.JSONDecodeError as e:
            logger.warning("Model response is not valid JSON: %s", e)
            raise ParseError(f"Failed to parse model response: {e}", raw_text=raw_text) from e

    return data
