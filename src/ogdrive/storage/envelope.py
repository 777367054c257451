"""
HTTP response contract helpers shared by the downloader and the relay.

The storage network serves either raw file bytes or a JSON error
envelope ``{"code": ..., "message": ...}``. A ``Content-Type`` of
``application/json`` is the explicit marker; when it is missing the
first bytes are inspected for an object carrying ``code`` or ``error``.

A successful response whose JSON body has neither key is file content, so
a stored document such as ``{"message": "hi"}`` downloads unchanged.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from ogdrive.constants import NOT_FOUND_ENVELOPE_CODE, SNIFF_BYTES

MIN_VALID_STATUS = 200
MAX_VALID_STATUS = 599


def clamp_status(status: Optional[int]) -> int:
    """Map an out-of-range HTTP status to 500."""
    if status is None or not MIN_VALID_STATUS <= status <= MAX_VALID_STATUS:
        return 500
    return status


def is_json_content_type(content_type: Optional[str]) -> bool:
    return bool(content_type) and "application/json" in content_type.lower()


def looks_like_error_envelope(head: bytes) -> bool:
    """Heuristic check of the first bytes for a JSON object with code/error."""
    text = head[:SNIFF_BYTES].decode("utf-8", errors="ignore").lstrip()
    return text.startswith("{") and ('"code"' in text or '"error"' in text)


def parse_error_envelope(body: bytes, *, failed: bool = False) -> Optional[Dict[str, Any]]:
    """
    Parse an error envelope.

    Args:
        body: Raw response body
        failed: The HTTP status already marks a failure, so an object
            carrying only ``message`` is accepted as the envelope too

    Returns:
        The envelope dict when the body is a JSON object with a non-zero
        ``code`` or an ``error`` (or, when ``failed``, a ``message``), else None
    """
    try:
        data = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    if "code" in data:
        return data if data["code"] not in (0, "0", None) else None
    if "error" in data or (failed and "message" in data):
        return data
    return None


def is_not_found_envelope(envelope: Optional[Dict[str, Any]]) -> bool:
    if not envelope:
        return False
    try:
        return int(envelope.get("code")) == NOT_FOUND_ENVELOPE_CODE
    except (TypeError, ValueError):
        return False


def envelope_message(envelope: Dict[str, Any], default: str = "Unknown error") -> str:
    return str(envelope.get("message") or envelope.get("error") or envelope.get("details") or default)
