"""Image annotation extraction.

None means "no usable image analysis"; an empty list means the model
annotated zero images. A malformed value is never replaced by a guess.
"""

import json
import re
from typing import Any, Dict, List, Optional

import structlog

logger = structlog.get_logger()

_LEGACY_ASSIGNMENT = re.compile(r"imageAnalysis\s*=\s*(\[[\s\S]*?\])[ \t]*(?:[\n\r]|$)")


def _string_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    if not all(isinstance(item, str) for item in value):
        return None
    return list(value)


def from_json_report(data: Dict[str, Any]) -> Optional[List[str]]:
    """Read the imageAnalysis array of a parsed JSON report."""
    if "imageAnalysis" not in data:
        return None
    result = _string_list(data["imageAnalysis"])
    if result is None:
        logger.warning(
            "image_analysis_invalid",
            source="json",
            value_type=type(data["imageAnalysis"]).__name__,
        )
    return result


def from_legacy_text(raw_text: str) -> Optional[List[str]]:
    """Read an `imageAnalysis = [...]` assignment from free text."""
    match = _LEGACY_ASSIGNMENT.search(raw_text or "")
    if not match:
        return None
    try:
        parsed = json.loads(match.group(1))
    except json.JSONDecodeError:
        logger.warning("image_analysis_invalid", source="legacy", reason="json_decode")
        return None
    result = _string_list(parsed)
    if result is None:
        logger.warning("image_analysis_invalid", source="legacy", reason="not_string_array")
    return result
