"""
Tolerant JSON extraction from AI completions.

Models wrap JSON in prose or markdown fences. Strategies, in order:
1. the whole text
2. the first ``` fenced block (optionally tagged json)
3. balanced {...} objects, the first that parses wins
"""

import json
import logging
import re
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

RE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)


class JSONExtractionError(ValueError):
    """No JSON object could be recovered from the text."""


def iter_balanced_objects(text: str) -> Iterator[str]:
    """
    Yield every top-level {...} substring with balanced braces.

    Braces inside JSON strings are skipped, so values like "a } b"
    don't close the object early.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"' and depth > 0:
            in_string = True
        elif ch == "{":
            if depth == 0:
                start = i
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start:i + 1]


def _loads_object(candidate: str) -> Optional[dict]:
    try:
        value = json.loads(candidate)
    except (TypeError, ValueError):
        return None
    return value if isinstance(value, dict) else None


def extract_json(raw_text: str) -> dict:
    """
    Recover a JSON object from free-form completion text.

    Raises JSONExtractionError if every strategy fails; callers decide
    the safe default.
    """
    text = (raw_text or "").strip()

    result = _loads_object(text)
    if result is not None:
        return result
    logger.debug("Completion is not bare JSON, looking for a fenced block")

    m = RE_FENCE.search(text)
    if m:
        result = _loads_object(m.group(1))
        if result is not None:
            return result
        logger.debug("Fenced block is not valid JSON, scanning for braces")

    for candidate in iter_balanced_objects(text):
        result = _loads_object(candidate)
        if result is not None:
            return result

    raise JSONExtractionError("No JSON object found in completion")
