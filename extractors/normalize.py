"""
Content normalizer: every raw content shape to one contiguous byte buffer.

The backend's transport decides what content looks like: a finished buffer,
a chunked stream (sync, async, or push), a blob handle with a bulk read,
a plain string, or something else entirely. Downstream extraction only
ever sees bytes.

Precedence when tagging untyped values (coerce_raw_content) and when
dispatching (normalize): contiguous → chunked → blob → text → opaque.
"""

import inspect
from collections.abc import AsyncIterable, Iterable, Iterator
from typing import Any, assert_never

from models import (
    BlobHandle,
    ChunkedStream,
    ContentRetrievalFailed,
    ContiguousBytes,
    FerretError,
    OpaqueContent,
    RawContent,
    TextPayload,
)

_BYTES_LIKE = (bytes, bytearray, memoryview)
_VARIANTS = (ContiguousBytes, ChunkedStream, BlobHandle, TextPayload, OpaqueContent)


def coerce_raw_content(value: Any) -> RawContent:
    """
    Tag an untyped transport value with its content variant.

    Already-tagged values pass through unchanged.
    """
    if isinstance(value, _VARIANTS):
        return value
    if isinstance(value, _BYTES_LIKE):
        return ContiguousBytes(value)
    if hasattr(value, "__aiter__") or isinstance(value, Iterator):
        return ChunkedStream(value)
    if isinstance(value, (list, tuple)) and value and all(
        isinstance(chunk, (*_BYTES_LIKE, str)) for chunk in value
    ):
        return ChunkedStream(value)
    read = getattr(value, "read", None)
    if read is not None and inspect.iscoroutinefunction(read):
        return BlobHandle(read)
    if isinstance(value, str):
        return TextPayload(value)
    return OpaqueContent(value)


def _fragment_bytes(fragment: Any, index: int) -> bytes:
    if isinstance(fragment, _BYTES_LIKE):
        return bytes(fragment)
    if isinstance(fragment, str):
        return fragment.encode("utf-8")
    raise ContentRetrievalFailed(
        f"Stream fragment {index} has unsupported type {type(fragment).__name__}"
    )


async def _drain(chunks: Iterable[Any] | AsyncIterable[Any]) -> bytes:
    """Read a stream to completion, keeping fragment order."""
    parts: list[bytes] = []
    try:
        if isinstance(chunks, AsyncIterable):
            async for fragment in chunks:
                parts.append(_fragment_bytes(fragment, len(parts)))
        else:
            for fragment in chunks:
                parts.append(_fragment_bytes(fragment, len(parts)))
    except FerretError:
        raise
    except Exception as e:
        raise ContentRetrievalFailed(
            f"Stream failed after {len(parts)} fragments: {e}",
            details={"fragments_read": len(parts)},
        ) from e
    return b"".join(parts)


def _coerce_opaque(value: Any) -> bytes:
    """Best-effort conversion of an unrecognized value."""
    if value is None or isinstance(value, (bool, int, float)):
        # bytes(5) is five NUL bytes, not content
        raise ContentRetrievalFailed(
            f"Cannot coerce {type(value).__name__} content to bytes"
        )
    if isinstance(value, str):
        return value.encode("utf-8")
    tobytes = getattr(value, "tobytes", None)
    try:
        if callable(tobytes):
            return bytes(tobytes())
        return bytes(value)
    except (TypeError, ValueError) as e:
        raise ContentRetrievalFailed(
            f"Cannot coerce {type(value).__name__} content to bytes: {e}"
        ) from e


async def normalize(raw: RawContent) -> bytes:
    """
    Reduce any raw content variant to a contiguous byte buffer.

    Args:
        raw: Tagged raw content (see coerce_raw_content for untyped values)

    Returns:
        The full content. May be empty; the caller decides whether that's fatal.

    Raises:
        ContentRetrievalFailed: If a stream or blob fails mid-read, or an
            opaque value has no byte representation
    """
    if isinstance(raw, ContiguousBytes):
        return bytes(raw.data)
    if isinstance(raw, ChunkedStream):
        return await _drain(raw.chunks)
    if isinstance(raw, BlobHandle):
        try:
            data = await raw.read_all()
        except FerretError:
            raise
        except Exception as e:
            raise ContentRetrievalFailed(f"Blob read failed: {e}") from e
        return bytes(data)
    if isinstance(raw, TextPayload):
        return raw.text.encode("utf-8")
    if isinstance(raw, OpaqueContent):
        return _coerce_opaque(raw.value)
    assert_never(raw)
