"""
Extractors: Pure functions for content handling.

No MCP awareness, no backend calls, no logging. Just transform input → output.
Easily testable with fixtures.
"""

from .normalize import normalize, coerce_raw_content
from .filetypes import (
    FileFamily,
    OFFICE_FAMILIES,
    detect_family,
    has_spreadsheet_signature,
    needs_signature_check,
    spreadsheet_placeholder,
)
from .image import validate_image_bytes

__all__ = [
    "normalize",
    "coerce_raw_content",
    "FileFamily",
    "OFFICE_FAMILIES",
    "detect_family",
    "has_spreadsheet_signature",
    "needs_signature_check",
    "spreadsheet_placeholder",
    "validate_image_bytes",
]
