"""Parser for the legacy `Key=value` response format.

A value runs from its key to the next recognized key at the start of a
line (or the end of text), so multi-line prose sections survive intact.
Missing text sections come back as empty strings; missing cost lines are
left out so the aggregator treats them as absent.
"""

import re
from typing import Any, Dict, Optional

# Longer keys first so "Timeline Scheduling" is never read as "Timeline"
KEY_FIELDS = [
    ("Contingency Suggestions", "contingencySuggestions"),
    ("Executive Summary", "executiveSummary"),
    ("Project Analysis", "projectAnalysis"),
    ("Market Conditions", "marketConditions"),
    ("Risk Assessment", "riskAssessment"),
    ("Timeline Scheduling", "timelineScheduling"),
    ("Recommendations", "recommendations"),
    ("Material_Cost", "materialsCost"),
    ("Labor_Cost", "laborCost"),
    ("Permits", "permitsCost"),
    ("Timeline", "timeline"),
    ("Report", "report"),
]
COST_FIELDS = {"materialsCost", "laborCost", "permitsCost"}

# Terminates the preceding value but is parsed elsewhere
TERMINATOR_KEYS = ["imageAnalysis"]

_KEY_TO_FIELD = dict(KEY_FIELDS)
_KEY_PATTERN = re.compile(
    r"^[ \t]*(?P<key>"
    + "|".join(re.escape(k) for k, _ in KEY_FIELDS)
    + "|"
    + "|".join(re.escape(k) for k in TERMINATOR_KEYS)
    + r")[ \t]*=",
    re.MULTILINE,
)
_LEADING_NUMBER = re.compile(r"^\s*\$?\s*(?P<num>-?\d[\d,]*(?:\.\d+)?|-?\.\d+)")
_DOLLAR_FIGURE = re.compile(r"\$\s*(?P<num>\d[\d,]*(?:\.\d+)?)")


def leading_number(value: str) -> Optional[float]:
    """Read the number at the start of a cost value ($ and commas allowed)."""
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    return float(match.group("num").replace(",", ""))


def dollar_figure(text: str) -> Optional[float]:
    """First $-prefixed figure in free text."""
    match = _DOLLAR_FIGURE.search(text or "")
    if not match:
        return None
    return float(match.group("num").replace(",", ""))


def split_sections(raw_text: str) -> Dict[str, str]:
    """Map each recognized key to its value. First occurrence wins."""
    matches = list(_KEY_PATTERN.finditer(raw_text))
    sections: Dict[str, str] = {}
    for i, match in enumerate(matches):
        key = match.group("key")
        end = matches[i + 1].start() if i + 1 < len(matches) else len(raw_text)
        if key in sections:
            continue
        sections[key] = raw_text[match.end():end].strip()
    return sections


def parse_legacy_report(raw_text: str) -> Dict[str, Any]:
    """Parse legacy key=value text into report fields.

    Cost values without a leading number are kept as the raw string so the
    aggregator records the degradation.
    """
    sections = split_sections(raw_text or "")
    data: Dict[str, Any] = {}

    for key, field_name in KEY_FIELDS:
        value = sections.get(key)
        if field_name in COST_FIELDS:
            if value is None:
                continue
            number = leading_number(value)
            data[field_name] = number if number is not None else value
        else:
            data[field_name] = value or ""

    contingency = dollar_figure(data["contingencySuggestions"])
    if contingency is not None:
        data["contingencyCost"] = contingency

    return data
