"""
PDF text extraction adapter: markitdown.

Only used when the caller explicitly asks for text. Scanned or image-only
PDFs come back empty, which the pipeline treats as a reason to return the
PDF bytes instead.
"""

from adapters.conversion import convert_bytes_to_markdown
from adapters.interfaces import TextExtractor


class MarkItDownPdfExtractor(TextExtractor):
    """PDF to text with markitdown."""

    def extract_text(self, data: bytes, mime_type: str, file_name: str) -> str:
        return convert_bytes_to_markdown(data, ".pdf")
