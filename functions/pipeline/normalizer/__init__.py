"""Response normalizer.

normalize() turns raw model text into a NormalizedReport. The JSON and
legacy key=value paths are independent parsers that share only the
output type.
"""

from typing import Union

from models.report import NormalizedReport, ReportFormat
from pipeline.normalizer.image_analysis import from_json_report, from_legacy_text
from pipeline.normalizer.json_parser import parse_json_report
from pipeline.normalizer.legacy_parser import parse_legacy_report


def normalize(raw_text: str, expected_format: Union[ReportFormat, str]) -> NormalizedReport:
    """Parse raw model text in the format the prompt asked for.

    Raises:
        MalformedModelOutputError: JSON format only; the legacy format
            tolerates missing keys.
    """
    fmt = ReportFormat(expected_format)
    if fmt is ReportFormat.JSON:
        data = parse_json_report(raw_text)
        images = from_json_report(data)
    else:
        data = parse_legacy_report(raw_text)
        images = from_legacy_text(raw_text)
    return NormalizedReport(data=data, format=fmt, image_analysis=images, raw_text=raw_text or "")


__all__ = ["normalize"]
