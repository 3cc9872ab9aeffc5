"""Normalized model report."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ReportFormat(str, Enum):
    """Wire format the model was asked to answer in."""

    JSON = "json"
    LEGACY_KV = "legacy-kv"


@dataclass(frozen=True)
class NormalizedReport:
    """Parsed, format-agnostic form of the model's text output.

    Equality covers the parsed data, the format and the image analysis.
    The raw text is kept for diagnostics only.
    """

    data: Dict[str, Any]
    format: ReportFormat
    image_analysis: Optional[List[str]] = None
    raw_text: str = field(default="", compare=False, repr=False)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def text_field(self, *keys: str) -> str:
        """First non-empty value among keys, rendered as text."""
        for key in keys:
            value = self.data.get(key)
            if value is None or value == "":
                continue
            if isinstance(value, str):
                return value.strip()
            if isinstance(value, list):
                return "; ".join(str(v) for v in value)
            return str(value)
        return ""
