"""
Local document conversion via markitdown.

markitdown picks its converter from the file extension and wants a path,
so buffers are written to a temp file, converted, and cleaned up.
"""

import tempfile
from pathlib import Path

from markitdown import MarkItDown


def convert_bytes_to_markdown(data: bytes, suffix: str) -> str:
    """
    Convert a document buffer to markdown text.

    Args:
        data: Raw file bytes
        suffix: File extension including the dot (".docx", ".pdf", ...)

    Returns:
        Extracted text ("" when markitdown finds nothing)
    """
    with tempfile.NamedTemporaryFile(suffix=suffix, delete=False) as tmp:
        tmp.write(data)
        tmp_path = Path(tmp.name)

    try:
        md = MarkItDown()
        result = md.convert_local(str(tmp_path))
        return result.text_content or ""
    finally:
        tmp_path.unlink(missing_ok=True)
