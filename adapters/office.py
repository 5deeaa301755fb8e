"""
Office text extraction adapter: DOCX, XLSX, PPTX via markitdown.

DOCX comes back as markdown, XLSX as one markdown table per sheet,
PPTX as slide text. Legacy binary formats (.doc, .ppt) are not supported by
markitdown; those raise and the pipeline falls back to raw bytes.
"""

from adapters.conversion import convert_bytes_to_markdown
from adapters.interfaces import TextExtractor
from extractors.filetypes import suffix_for


class MarkItDownOfficeExtractor(TextExtractor):
    """Office documents to text with markitdown."""

    def extract_text(self, data: bytes, mime_type: str, file_name: str) -> str:
        suffix = suffix_for(mime_type, file_name)
        if not suffix:
            raise ValueError(f"Cannot determine Office format for {file_name!r} ({mime_type})")
        return convert_bytes_to_markdown(data, suffix)
