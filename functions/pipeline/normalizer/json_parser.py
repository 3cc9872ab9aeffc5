"""JSON response parsing with the two documented repairs.

1. Leading/trailing ``` fences (optionally tagged json) are stripped.
2. Bare numeric ranges used as values (`"estimatedDays": 5-8`) are quoted.

Nothing else is repaired; any other defect is a MalformedModelOutputError.
"""

import json
import re
from typing import Any, Dict

from config.errors import MalformedModelOutputError

_LEADING_FENCE = re.compile(r"^```[ \t]*(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_TRAILING_FENCE = re.compile(r"\r?\n?```\s*$")

# A string literal (consumed as-is) or a bare N-M value after : [ or ,
_STRING_OR_RANGE = re.compile(
    r'"(?:\\.|[^"\\])*"'
    r'|(?<=[:\[,])(?P<ws>\s*)(?P<low>\d+(?:\.\d+)?)\s*-\s*(?P<high>\d+(?:\.\d+)?)(?=\s*[,}\]])'
)


def strip_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    stripped = text.strip()
    stripped = _LEADING_FENCE.sub("", stripped, count=1)
    stripped = _TRAILING_FENCE.sub("", stripped, count=1)
    return stripped.strip()


def quote_numeric_ranges(text: str) -> str:
    """Quote bare numeric ranges outside string literals."""
    def _replace(match: "re.Match[str]") -> str:
        if match.group("low") is None:
            return match.group(0)
        return f'{match.group("ws")}"{match.group("low")}-{match.group("high")}"'

    return _STRING_OR_RANGE.sub(_replace, text)


def parse_json_report(raw_text: str) -> Dict[str, Any]:
    """Parse model text into a JSON object.

    Raises:
        MalformedModelOutputError: Empty text, invalid JSON after repairs,
            or a top level that is not an object.
    """
    if not raw_text or not raw_text.strip():
        raise MalformedModelOutputError("Model returned empty text", raw_text=raw_text or "")

    candidate = quote_numeric_ranges(strip_fences(raw_text))
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise MalformedModelOutputError(
            f"Model output is not valid JSON: {e.msg}",
            raw_text=raw_text,
            details={"line": e.lineno, "column": e.colno},
        ) from e

    if not isinstance(parsed, dict):
        raise MalformedModelOutputError(
            f"Expected a JSON object, got {type(parsed).__name__}",
            raw_text=raw_text,
        )
    return parsed
