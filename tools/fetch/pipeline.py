"""
Content extraction pipeline: normalized bytes to text or binary output.

Structured extraction is an optimization, never a requirement: each family
has a ladder of stages, tried in order. A stage that fails or produces
nothing raises ExtractionDegraded and the next stage runs. The last stage of
every ladder always succeeds.

Office (docx/xlsx/pptx):  structured text → raw bytes
    spreadsheets asked for mode="text": structured text → placeholder text
PDF:    binary by default; with extract_text: structured text → raw bytes
Image:  always binary (validation is advisory)
Text:   decoded UTF-8 when text is wanted, else binary
Other:  binary with the backend content type
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from adapters.interfaces import TextExtractor
from adapters.office import MarkItDownOfficeExtractor
from adapters.pdf import MarkItDownPdfExtractor
from extractors.filetypes import (
    FileFamily,
    OFFICE_FAMILIES,
    detect_family,
    has_spreadsheet_signature,
    needs_signature_check,
    spreadsheet_placeholder,
)
from extractors.image import validate_image_bytes
from logging_config import logger
from models import (
    BinaryContent,
    ContentRetrievalFailed,
    ExtractedContent,
    ExtractionDegraded,
    TextContent,
)

FetchMode = Literal["binary", "text"]
FETCH_MODES: tuple[str, ...] = ("binary", "text")

DEFAULT_CONTENT_TYPE = "application/octet-stream"
PDF_CONTENT_TYPE = "application/pdf"

Stage = Callable[[], Awaitable[ExtractedContent]]


@dataclass
class Extractors:
    """Text extractors the pipeline delegates to."""
    office: TextExtractor
    pdf: TextExtractor


def default_extractors() -> Extractors:
    """markitdown-backed extractors."""
    return Extractors(office=MarkItDownOfficeExtractor(), pdf=MarkItDownPdfExtractor())


async def _structured_text(
    extractor: TextExtractor, data: bytes, mime_type: str, file_name: str, label: str
) -> TextContent:
    try:
        text = await asyncio.to_thread(extractor.extract_text, data, mime_type, file_name)
    except Exception as e:
        raise ExtractionDegraded(label, f"{type(e).__name__}: {e}") from e
    if not text or not text.strip():
        raise ExtractionDegraded(label, "no text extracted")
    return TextContent(text=text, source_type=mime_type, stage="structured")


async def _run_ladder(stages: Sequence[Stage], warnings: list[str], file_name: str) -> ExtractedContent:
    """Try each stage in order. The last stage is expected to succeed."""
    for stage in stages[:-1]:
        try:
            content = await stage()
        except ExtractionDegraded as e:
            logger.info(f"{file_name}: {e.message}, falling back")
            warnings.append(e.message)
            continue
        content.warnings.extend(warnings)
        return content

    content = await stages[-1]()
    content.warnings.extend(warnings)
    return content


async def extract_content(
    data: bytes,
    mime_type: str | None,
    file_name: str,
    *,
    extract_text: bool = False,
    mode: FetchMode = "binary",
    extractors: Extractors | None = None,
) -> ExtractedContent:
    """
    Turn a normalized buffer into the content returned to the caller.

    Args:
        data: Normalized content bytes
        mime_type: Backend-reported content type (may be None)
        file_name: Item name (extension is a detection fallback)
        extract_text: Caller asked for text extraction
        mode: "binary" or "text"
        extractors: Text extractors (default: markitdown)

    Returns:
        TextContent or BinaryContent, tagged with the stage that produced it

    Raises:
        ContentRetrievalFailed: Empty buffer (never for extraction failures)
    """
    if not data:
        raise ContentRetrievalFailed(
            f"Content of {file_name or 'item'} is empty (0 bytes)",
            details={"name": file_name},
        )

    family = detect_family(mime_type, file_name)
    content_type = mime_type or DEFAULT_CONTENT_TYPE
    wants_text = extract_text or mode == "text"
    warnings: list[str] = []

    if family in OFFICE_FAMILIES:
        if not wants_text:
            return BinaryContent(data=data, content_type=content_type)

        if family is FileFamily.SPREADSHEET and needs_signature_check(mime_type, file_name):
            if not has_spreadsheet_signature(data):
                message = f"{file_name}: content does not start with an xlsx/xls signature"
                logger.warning(message)
                warnings.append(message)

        ext = extractors or default_extractors()

        async def office_text() -> ExtractedContent:
            return await _structured_text(ext.office, data, content_type, file_name, family.value)

        async def raw_passthrough() -> ExtractedContent:
            return BinaryContent(data=data, content_type=content_type, stage="raw_passthrough")

        async def placeholder() -> ExtractedContent:
            return TextContent(
                text=spreadsheet_placeholder(file_name, mime_type, len(data)),
                source_type=content_type,
                stage="placeholder",
            )

        # mode="text" means the caller can't use spreadsheet bytes
        last = placeholder if family is FileFamily.SPREADSHEET and mode == "text" else raw_passthrough
        return await _run_ladder([office_text, last], warnings, file_name)

    if family is FileFamily.PDF:
        if not extract_text:
            return BinaryContent(data=data, content_type=PDF_CONTENT_TYPE)

        ext = extractors or default_extractors()

        async def pdf_text() -> ExtractedContent:
            return await _structured_text(ext.pdf, data, PDF_CONTENT_TYPE, file_name, "pdf")

        async def pdf_bytes() -> ExtractedContent:
            return BinaryContent(data=data, content_type=PDF_CONTENT_TYPE, stage="raw_passthrough")

        return await _run_ladder([pdf_text, pdf_bytes], warnings, file_name)

    if family is FileFamily.IMAGE:
        validation = validate_image_bytes(data, mime_type)
        if not validation.valid and validation.warning:
            logger.warning(f"{file_name}: {validation.warning}")
            warnings.append(validation.warning)
        return BinaryContent(data=data, content_type=content_type, warnings=warnings)

    if family is FileFamily.TEXT and wants_text:
        return TextContent(
            text=data.decode("utf-8", errors="replace"),
            source_type=content_type,
            stage="decoded",
        )

    return BinaryContent(data=data, content_type=content_type)
