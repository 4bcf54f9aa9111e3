"""Helpers for pulling JSON out of free-form model output.

Small instruction-tuned models rarely return bare JSON. Typical output wraps
the object in prose or markdown fences, uses smart quotes, or leaves a
trailing comma before a closing bracket. These helpers recover the object
when they can and return None when they cannot; they never raise.

Example:
    >>> raw = extract_json_object('Sure! ```json\\n{"theme": "UI",}\\n```')
    >>> try_parse_json(raw)
    {'theme': 'UI'}
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_SMART_DOUBLE_QUOTES = str.maketrans({"“": '"', "”": '"'})
_SMART_SINGLE_QUOTES = str.maketrans({"‘": "'", "’": "'"})


def _matching_brace(text: str, start: int) -> int:
    """Return the index of the '}' closing the object opened at start, or -1.

    Braces inside JSON string literals are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def extract_json_object(text: str) -> str | None:
    """Locate the first top-level JSON object in text.

    Scans from the first '{' to its matching '}'. If the object is never
    closed (for example, output cut off by the token cap), falls back to the
    span between the first '{' and the last '}'.

    Args:
        text: Raw model output

    Returns:
        The candidate object text, or None if no '{' is followed by a '}'
    """
    if not text:
        return None
    start = text.find("{")
    if start == -1:
        return None

    end = _matching_brace(text, start)
    if end == -1:
        end = text.rfind("}")
        if end <= start:
            return None
    return text[start:end + 1]


def try_parse_json(raw: str) -> Any | None:
    """Parse JSON, repairing common model formatting mistakes on failure.

    Repairs applied only when the strict parse fails:
        - Curly double and single quotes become straight ASCII quotes
        - Trailing commas before '}' or ']' are removed

    No schema validation is performed.

    Args:
        raw: Candidate JSON text

    Returns:
        Parsed value, or None if the text cannot be parsed
    """
    if not isinstance(raw, str):
        return None
    try:
        return json.loads(raw)
    except ValueError:
        pass

    repaired = raw.translate(_SMART_DOUBLE_QUOTES).translate(_SMART_SINGLE_QUOTES)
    repaired = _TRAILING_COMMA.sub(r"\1", repaired)
    try:
        value = json.loads(repaired)
    except ValueError:
        logger.debug("JSON repair failed | preview=%s", raw[:80])
        return None
    logger.debug("JSON parsed after repair")
    return value


def is_encodable(text: str) -> bool:
    """False for strings holding lone surrogates, which json.loads lets through from '\\ud800' escapes."""
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True
