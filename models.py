"""
Type definitions for ferret.

Dataclasses defining the contracts between layers:
- Adapters produce these structures from backend responses
- Extractors consume raw content and return bytes or text
- Tools wire everything together (enumerate, resolve, locate, fetch)

These types make the adapter→tool contract explicit and IDE-checkable.
"""

import base64
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal


# ============================================================================
# ERROR TYPES
# ============================================================================

class ErrorKind(Enum):
    """Categories of errors for consistent handling."""
    AUTH_EXPIRED = "auth_expired"        # Token invalid or expired
    NOT_FOUND = "not_found"              # Backend says the item isn't there
    PERMISSION_DENIED = "permission_denied"  # No access to container/item
    RATE_LIMITED = "rate_limited"        # Hit API throttling
    NETWORK_ERROR = "network_error"      # Connection failed or 5xx
    TIMEOUT = "timeout"                  # Request timed out
    INVALID_INPUT = "invalid_input"      # Bad parameters
    RESOLUTION_NOT_FOUND = "resolution_not_found"  # No site/container matched a name
    RESOURCE_NOT_ACCESSIBLE = "resource_not_accessible"  # Every candidate missed
    CONTENT_RETRIEVAL_FAILED = "content_retrieval_failed"  # Empty or unusable content
    EXTRACTION_DEGRADED = "extraction_degraded"  # Internal: fall to next ladder stage
    UNKNOWN = "unknown"                  # Unexpected error


class FerretError(Exception):
    """
    Structured error for consistent handling across layers.

    Adapters raise these on backend failures.
    Tools catch and format for MCP/CLI responses.

    Inherits from Exception so it can be raised.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for MCP response."""
        return {
            "error": True,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


class ResolutionNotFound(FerretError):
    """No candidate container matched a human-readable name."""

    def __init__(self, name: str, scope_hint: str | None = None):
        message = f"No site or container matches '{name}'"
        if scope_hint:
            message += f" (scope: {scope_hint})"
        super().__init__(
            ErrorKind.RESOLUTION_NOT_FOUND,
            message,
            details={"name": name, "scope_hint": scope_hint},
        )
        self.name = name
        self.scope_hint = scope_hint


class ResourceNotAccessible(FerretError):
    """
    Every candidate container was probed and none reported the resource.

    Carries the probe attempts so callers can see where we looked and why
    each container missed.
    """

    def __init__(self, resource_id: str, attempts: list["ProbeAttempt"]):
        super().__init__(
            ErrorKind.RESOURCE_NOT_ACCESSIBLE,
            f"Resource '{resource_id}' not found in any of {len(attempts)} accessible containers",
            details={
                "resource_id": resource_id,
                "attempts": [a.to_dict() for a in attempts],
            },
        )
        self.resource_id = resource_id
        self.attempts = attempts


class ContentRetrievalFailed(FerretError):
    """Content was located but could not be turned into usable bytes."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(ErrorKind.CONTENT_RETRIEVAL_FAILED, message, details=details)


class ExtractionDegraded(FerretError):
    """
    A structured extraction stage failed or produced nothing.

    Internal to the extraction pipeline: caught there and answered by
    moving to the next stage. Never surfaces to callers.
    """

    def __init__(self, stage: str, reason: str):
        super().__init__(
            ErrorKind.EXTRACTION_DEGRADED,
            f"{stage} extraction degraded: {reason}",
            details={"stage": stage},
        )
        self.stage = stage
        self.reason = reason


# ============================================================================
# DIRECTORY TYPES
# ============================================================================

class Classification(Enum):
    """Where a discovered site or container sits in the search order."""
    BUSINESS = "business"
    PERSONAL = "personal"
    CACHE = "cache"


@dataclass
class Site:
    """A logical grouping of containers (SharePoint site)."""
    id: str
    display_name: str
    web_url: str = ""
    name: str = ""  # URL segment, e.g. "contoso-team"


@dataclass
class ContainerRef:
    """A storage container (document library / drive)."""
    id: str
    name: str
    container_type: str = "documentLibrary"  # documentLibrary, business, personal
    web_url: str = ""
    site_id: str | None = None
    site_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "container_type": self.container_type,
            "web_url": self.web_url,
        }
        if self.site_id:
            result["site_id"] = self.site_id
        if self.site_name:
            result["site_name"] = self.site_name
        return result


@dataclass
class ItemMetadata:
    """Metadata for a located resource (file or folder)."""
    id: str
    name: str
    size: int = 0
    mime_type: str | None = None
    is_folder: bool = False
    web_url: str = ""
    container_id: str = ""
    parent_path: str | None = None
    modified_time: str | None = None  # ISO format

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "mime_type": self.mime_type,
            "is_folder": self.is_folder,
            "web_url": self.web_url,
            "parent_path": self.parent_path,
            "modified_time": self.modified_time,
        }


ProbeOutcome = Literal["found", "not_found", "forbidden", "timeout", "error"]


@dataclass
class ProbeAttempt:
    """One container probed during a locate search."""
    container_id: str
    container_name: str
    outcome: ProbeOutcome
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "container_id": self.container_id,
            "container_name": self.container_name,
            "outcome": self.outcome,
            "reason": self.reason,
        }


@dataclass
class Location:
    """Where a resource lives: the authoritative container plus item metadata."""
    container: ContainerRef
    item: ItemMetadata
    attempts: list[ProbeAttempt] = field(default_factory=list)
    cache_hit: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "container": self.container.to_dict(),
            "item": self.item.to_dict(),
            "probes": len(self.attempts),
            "cache_hit": self.cache_hit,
        }


# ============================================================================
# RAW CONTENT TYPES
# ============================================================================
# The backend hands back content in whatever shape its transport produced.
# Adapters tag it with one of these variants; extractors/normalize.py turns
# every variant into contiguous bytes.

@dataclass
class ContiguousBytes:
    """Already-contiguous buffer."""
    data: bytes | bytearray | memoryview


@dataclass
class ChunkedStream:
    """Ordered byte fragments, sync or async (push-streams included)."""
    chunks: Iterable[bytes | str] | AsyncIterable[bytes | str]


@dataclass
class BlobHandle:
    """A handle exposing a bulk async read."""
    read_all: Callable[[], Awaitable[bytes | bytearray]]


@dataclass
class TextPayload:
    """Content delivered as a string."""
    text: str


@dataclass
class OpaqueContent:
    """Anything else. Coerced best-effort."""
    value: Any


RawContent = ContiguousBytes | ChunkedStream | BlobHandle | TextPayload | OpaqueContent


# ============================================================================
# EXTRACTED CONTENT TYPES
# ============================================================================

ExtractionStage = Literal[
    "structured", "decoded", "raw_passthrough", "placeholder", "binary",
]


@dataclass
class TextContent:
    """Text produced by the extraction pipeline."""
    text: str
    source_type: str  # MIME type of the original resource
    stage: ExtractionStage = "structured"
    warnings: list[str] = field(default_factory=list)


@dataclass
class BinaryContent:
    """Bytes returned as-is with their content type."""
    data: bytes
    content_type: str
    stage: ExtractionStage = "binary"
    warnings: list[str] = field(default_factory=list)


ExtractedContent = TextContent | BinaryContent


# ============================================================================
# CACHE TYPES
# ============================================================================

@dataclass
class CacheStats:
    """Observable cache counters."""
    hits: int = 0
    misses: int = 0
    size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"hits": self.hits, "misses": self.misses, "size": self.size}


# ============================================================================
# TOOL RESPONSE TYPES
# ============================================================================

@dataclass
class FetchResult:
    """Successful fetch: content plus provenance."""
    resource_id: str
    container: ContainerRef
    item: ItemMetadata
    content: ExtractedContent
    cache_hit: bool = False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "resource_id": self.resource_id,
            "name": self.item.name,
            "container": self.container.to_dict(),
            "stage": self.content.stage,
            "cache_hit": self.cache_hit,
        }
        if isinstance(self.content, TextContent):
            result["format"] = "text"
            result["content_type"] = self.content.source_type
            result["text"] = self.content.text
        else:
            result["format"] = "base64"
            result["content_type"] = self.content.content_type
            result["size"] = len(self.content.data)
            result["data"] = base64.b64encode(self.content.data).decode("ascii")
        if self.content.warnings:
            result["warnings"] = self.content.warnings
        return result


@dataclass
class OperationResult:
    """Successful resolve/locate/cache operation."""
    operation: str
    payload: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"operation": self.operation, **self.payload}


@dataclass
class OperationError:
    """Operation error result."""
    error: bool = True
    kind: str = "unknown"
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"error": self.error, "kind": self.kind, "message": self.message}
        if self.details:
            result.update(self.details)
        return result
