"""Uploaded-file validation.

Converts the request `files` list into InlineParts in upload order. Any
unusable entry invalidates the whole request: skipping it would shift the
order the image annotations are matched against.
"""

import base64
import binascii
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import structlog

from config.errors import ErrorCode, ValidationError
from config.settings import settings
from services.gemini_client import InlinePart

logger = structlog.get_logger(__name__)

_DATA_URL = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[\w=.+-]+)*;base64,(?P<data>.*)$", re.DOTALL)


@dataclass
class AttachmentValidationResult:
    """Result of attachment validation."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    parts: List[InlinePart] = field(default_factory=list)


def _check_file(index: int, entry: Any, max_bytes: int) -> Tuple[Optional[InlinePart], Optional[str]]:
    label = f"files[{index}]"
    if not isinstance(entry, dict):
        return None, f"{label}: expected an object"

    name = entry.get("name") or label
    data_url = entry.get("data")
    if not isinstance(data_url, str):
        return None, f"{name}: missing data"

    match = _DATA_URL.match(data_url.strip())
    if not match:
        return None, f"{name}: data is not a base64 data URL"

    mime = str(entry.get("type") or match.group("mime")).lower()
    if not mime.startswith("image/"):
        return None, f"{name}: unsupported type {mime}"

    payload = re.sub(r"\s+", "", match.group("data"))
    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None, f"{name}: invalid base64 payload"

    if len(decoded) > max_bytes:
        return None, f"{name}: {len(decoded)} bytes exceeds limit of {max_bytes}"

    return InlinePart(mime_type=mime, data=payload), None


def validate_attachments(
    files: Optional[List[Any]],
    max_count: Optional[int] = None,
    max_bytes: Optional[int] = None,
) -> AttachmentValidationResult:
    """Validate uploaded files and build inline parts.

    Args:
        files: Request `files` list (each {name, type, size, data}); None means no files.
        max_count: Maximum number of files; defaults to settings.max_attachments.
        max_bytes: Maximum decoded size per file; defaults to settings.max_attachment_bytes.

    Returns:
        AttachmentValidationResult with parts in upload order when valid.
    """
    if files is None:
        return AttachmentValidationResult()
    if not isinstance(files, list):
        return AttachmentValidationResult(is_valid=False, errors=["files must be a list"])

    max_count = settings.max_attachments if max_count is None else max_count
    max_bytes = settings.max_attachment_bytes if max_bytes is None else max_bytes

    errors: List[str] = []
    if len(files) > max_count:
        errors.append(f"{len(files)} files exceeds limit of {max_count}")

    parts: List[InlinePart] = []
    for index, entry in enumerate(files):
        part, error = _check_file(index, entry, max_bytes)
        if error:
            errors.append(error)
        else:
            parts.append(part)

    if errors:
        logger.warning("attachments_invalid", file_count=len(files), errors=errors)
        return AttachmentValidationResult(is_valid=False, errors=errors)
    return AttachmentValidationResult(is_valid=True, parts=parts)


def parse_attachments(files: Optional[List[Any]]) -> List[InlinePart]:
    """Validate and return inline parts, raising on any invalid entry.

    Raises:
        ValidationError: With one message per offending file.
    """
    result = validate_attachments(files)
    if not result.is_valid:
        raise ValidationError(
            "Invalid attachments",
            field="files",
            errors=result.errors,
            code=ErrorCode.INVALID_ATTACHMENT,
        )
    return result.parts


def strip_attachment_payloads(files: Optional[List[Any]]) -> List[Dict[str, Any]]:
    """File metadata without the base64 data, for logs and stored form input."""
    return [
        {k: v for k, v in entry.items() if k != "data"}
        for entry in (files or [])
        if isinstance(entry, dict)
    ]
