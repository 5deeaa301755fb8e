"""
Content retrieval for a located item: download → normalize → extract.
"""

from adapters.interfaces import DirectoryBackend
from extractors.normalize import normalize
from graph_config import MAX_FILE_SIZE_BYTES
from logging_config import logger
from models import (
    ContentRetrievalFailed,
    ErrorKind,
    FerretError,
    FetchResult,
    Location,
)

from .pipeline import Extractors, FetchMode, extract_content


async def fetch_located(
    backend: DirectoryBackend,
    resource_id: str,
    location: Location,
    *,
    extract_text: bool = False,
    mode: FetchMode = "binary",
    extractors: Extractors | None = None,
    max_file_size: int = MAX_FILE_SIZE_BYTES,
) -> FetchResult:
    """
    Retrieve and extract the content of an already-located item.

    Args:
        backend: Directory backend
        resource_id: The ID the caller asked for
        location: Where the item lives (from tools.locate)
        extract_text: Attempt structured text extraction
        mode: "binary" or "text"
        extractors: Text extractors (default: markitdown)
        max_file_size: Reject items larger than this (bytes, by metadata)

    Raises:
        ContentRetrievalFailed: Folder, failed download, or zero bytes
        FerretError(INVALID_INPUT): Item exceeds max_file_size
    """
    item = location.item
    container = location.container

    if item.is_folder:
        raise ContentRetrievalFailed(
            f"Cannot download folder content: {item.name}",
            details={"resource_id": resource_id, "name": item.name},
        )

    if max_file_size and item.size > max_file_size:
        raise FerretError(
            ErrorKind.INVALID_INPUT,
            f"{item.name} is {item.size:,} bytes, over the {max_file_size:,} byte limit",
            details={"resource_id": resource_id, "size": item.size},
        )

    try:
        raw = await backend.get_item_content(container.id, item.id)
    except ContentRetrievalFailed:
        raise
    except FerretError as e:
        raise ContentRetrievalFailed(
            f"Download of {item.name} failed: {e.message}",
            details={"resource_id": resource_id, "cause": e.kind.value},
        ) from e

    data = await normalize(raw)
    logger.debug(f"Normalized {item.name}: {type(raw).__name__} → {len(data)} bytes")

    content = await extract_content(
        data,
        item.mime_type,
        item.name,
        extract_text=extract_text,
        mode=mode,
        extractors=extractors,
    )
    logger.info(f"Fetched {item.name} from {container.name} ({content.stage})")

    return FetchResult(
        resource_id=resource_id,
        container=container,
        item=item,
        content=content,
    )
