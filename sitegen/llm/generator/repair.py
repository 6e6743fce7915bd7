"""JSON recovery for LLM responses.

Models wrap JSON in code fences, add trailing commas or chat around the
object. `extract_json` recovers the first JSON object it can.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

# Common JSON repair patterns (pattern, replacement)
JSON_REPAIR_PATTERNS: list[tuple[str, str]] = [
    # Remove markdown code blocks
    (r"^```(?:json|JSON)?\s*", ""),
    (r"\s*```$", ""),
    # Fix trailing commas before closing braces/brackets
    (r",\s*}", "}"),
    (r",\s*]", "]"),
]

_PREFIXES = (
    "Here is the JSON:",
    "Here's the JSON:",
    "JSON output:",
    "Output:",
    "Result:",
)


def strip_code_fences(content: str) -> str:
    """Remove a surrounding ```json ... ``` block, if any."""
    cleaned = content.strip()
    fenced = re.search(r"```(?:json|JSON)?\s*([\s\S]*?)\s*```", cleaned)
    if fenced:
        return fenced.group(1).strip()
    return cleaned


def _loads_object(text: str) -> dict[str, Any] | None:
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def _balanced_object(content: str) -> str | None:
    """First brace-balanced `{...}` span, skipping braces inside strings."""
    start = content.find("{")
    if start < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i, char in enumerate(content[start:], start):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return content[start : i + 1]
    return None


def extract_json(content: str) -> dict[str, Any] | None:
    """Recover a JSON object from an LLM response.

    Tries, in order:
    1. The content as-is
    2. Code fences stripped and trailing commas fixed
    3. The first brace-balanced object in mixed content
    4. Known chatty prefixes removed

    Args:
        content: Raw model output.

    Returns:
        Parsed dict, or None if nothing parseable was found.

    Example:
        >>> extract_json('```json\\n{"key": "value",}\\n```')
        {'key': 'value'}
    """
    if not content or not content.strip():
        return None

    parsed = _loads_object(content.strip())
    if parsed is not None:
        return parsed

    cleaned = strip_code_fences(content)
    for pattern, replacement in JSON_REPAIR_PATTERNS:
        cleaned = re.sub(pattern, replacement, cleaned, flags=re.MULTILINE)
    parsed = _loads_object(cleaned)
    if parsed is not None:
        logger.debug("Recovered JSON after cleanup")
        return parsed

    span = _balanced_object(cleaned)
    if span is not None:
        parsed = _loads_object(span)
        if parsed is not None:
            logger.debug("Recovered JSON object from mixed content")
            return parsed

    for prefix in _PREFIXES:
        if cleaned.lower().startswith(prefix.lower()):
            parsed = _loads_object(cleaned[len(prefix) :].strip())
            if parsed is not None:
                return parsed

    return None


__all__ = ["JSON_REPAIR_PATTERNS", "extract_json", "strip_code_fences"]
