"""
File family detection and content signatures.

Pure functions: MIME type first, extension second.
"""

from enum import Enum
from pathlib import PurePosixPath


class FileFamily(Enum):
    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    PDF = "pdf"
    IMAGE = "image"
    TEXT = "text"
    ARCHIVE = "archive"
    OTHER = "other"


OFFICE_FAMILIES = frozenset({FileFamily.DOCUMENT, FileFamily.SPREADSHEET, FileFamily.PRESENTATION})

# (mime types, extensions) per family
_FAMILY_MAP: dict[FileFamily, tuple[frozenset[str], frozenset[str]]] = {
    FileFamily.DOCUMENT: (
        frozenset({
            "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            "application/msword",
            "application/vnd.oasis.opendocument.text",
            "application/rtf",
        }),
        frozenset({".docx", ".doc", ".odt", ".rtf"}),
    ),
    FileFamily.SPREADSHEET: (
        frozenset({
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            "application/vnd.ms-excel",
            "application/vnd.oasis.opendocument.spreadsheet",
        }),
        frozenset({".xlsx", ".xls", ".ods"}),
    ),
    FileFamily.PRESENTATION: (
        frozenset({
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
            "application/vnd.ms-powerpoint",
            "application/vnd.oasis.opendocument.presentation",
        }),
        frozenset({".pptx", ".ppt", ".odp"}),
    ),
    FileFamily.PDF: (
        frozenset({"application/pdf"}),
        frozenset({".pdf"}),
    ),
    FileFamily.IMAGE: (
        frozenset({
            "image/jpeg", "image/png", "image/gif", "image/bmp",
            "image/svg+xml", "image/webp", "image/tiff",
        }),
        frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp", ".svg", ".webp", ".tif", ".tiff"}),
    ),
    FileFamily.TEXT: (
        frozenset({
            "text/plain", "text/html", "text/css", "text/javascript", "text/xml",
            "text/markdown", "text/yaml", "text/csv",
            "application/json", "application/xml", "application/yaml",
        }),
        frozenset({".txt", ".html", ".css", ".js", ".json", ".xml", ".md", ".yml", ".yaml", ".csv"}),
    ),
    FileFamily.ARCHIVE: (
        frozenset({
            "application/zip", "application/x-rar-compressed", "application/x-7z-compressed",
            "application/x-tar", "application/gzip",
        }),
        frozenset({".zip", ".rar", ".7z", ".tar", ".gz"}),
    ),
}

# Suffix markitdown needs to pick a converter, keyed by MIME type
MIME_TO_SUFFIX: dict[str, str] = {
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": ".xlsx",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": ".pptx",
    "application/vnd.ms-excel": ".xls",
    "application/msword": ".doc",
    "application/vnd.ms-powerpoint": ".ppt",
    "application/pdf": ".pdf",
}

# Binary spreadsheet formats whose buffers should carry a container signature
_BINARY_SPREADSHEET_SUFFIXES = frozenset({".xlsx", ".xls"})
_ZIP_SIGNATURE = b"PK\x03\x04"                          # xlsx (OOXML)
_OLE2_SIGNATURE = b"\xD0\xCF\x11\xE0\xA1\xB1\x1A\xE1"  # xls (compound file)


def file_suffix(file_name: str) -> str:
    """Lower-cased extension including the dot, or ""."""
    return PurePosixPath(file_name or "").suffix.lower()


def detect_family(mime_type: str | None, file_name: str = "") -> FileFamily:
    """
    Detect the file family from MIME type, falling back to extension.

    Backends often report application/octet-stream for Office uploads,
    so the extension check matters.
    """
    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime:
        for family, (mimes, _) in _FAMILY_MAP.items():
            if mime in mimes:
                return family
        if mime.startswith("image/"):
            return FileFamily.IMAGE
        if mime.startswith("text/"):
            return FileFamily.TEXT

    suffix = file_suffix(file_name)
    if suffix:
        for family, (_, extensions) in _FAMILY_MAP.items():
            if suffix in extensions:
                return family

    return FileFamily.OTHER


def suffix_for(mime_type: str | None, file_name: str) -> str:
    """Extension to hand to a converter: the file's own, else one from the MIME type."""
    return file_suffix(file_name) or MIME_TO_SUFFIX.get((mime_type or "").lower(), "")


def needs_signature_check(mime_type: str | None, file_name: str) -> bool:
    """True for xlsx/xls, whose buffers should start with a ZIP or OLE2 header."""
    return suffix_for(mime_type, file_name) in _BINARY_SPREADSHEET_SUFFIXES


def has_spreadsheet_signature(data: bytes) -> bool:
    """Check the buffer starts with a ZIP (xlsx) or OLE2 (xls) header."""
    return data.startswith(_ZIP_SIGNATURE) or data.startswith(_OLE2_SIGNATURE)


def spreadsheet_placeholder(file_name: str, mime_type: str | None, size: int) -> str:
    """Text returned when a spreadsheet was asked for as text but nothing could be extracted."""
    return (
        f"[Spreadsheet: {file_name or 'unnamed'}]\n"
        f"Type: {mime_type or 'unknown'}\n"
        f"Size: {size:,} bytes\n"
        "Text extraction produced no content. Fetch in binary mode to get the original file."
    )
