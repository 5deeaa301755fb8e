"""
Backend interfaces consumed by the core.

The tools layer only talks to these abstract classes, so the search and
fetch logic runs unchanged against Graph, a test double, or any other
directory-style store.
"""

from abc import ABC, abstractmethod

from models import ContainerRef, ItemMetadata, RawContent, Site


class DirectoryBackend(ABC):
    """
    Read-only access to a sites → containers → items hierarchy.

    Implementations raise FerretError on failure (NOT_FOUND, PERMISSION_DENIED,
    AUTH_EXPIRED, ...). They never create or modify anything.
    """

    @abstractmethod
    async def list_sites(self, filter_expr: str) -> list[Site]:
        """Search sites visible to the caller. "*" lists everything."""

    @abstractmethod
    async def list_containers(self, site_id: str) -> list[ContainerRef]:
        """List the containers (document libraries) of one site."""

    @abstractmethod
    async def list_own_containers(self) -> list[ContainerRef]:
        """List the caller's own containers (OneDrive and shared-with-me drives)."""

    @abstractmethod
    async def get_item_metadata(self, container_id: str, item_id: str) -> ItemMetadata:
        """Fetch item metadata. Raises FerretError(NOT_FOUND) if absent."""

    @abstractmethod
    async def get_item_content(self, container_id: str, item_id: str) -> RawContent:
        """Fetch item content in whatever shape the transport produces."""

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    # Open leases held by shared searches still running on this backend
    _leases: int = 0
    _close_pending: bool = False

    async def __aenter__(self) -> "DirectoryBackend":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def retain(self) -> None:
        """Keep the backend open until the matching release()."""
        self._leases += 1

    async def release(self) -> None:
        """Drop one lease. Runs a deferred close once the last lease goes."""
        self._leases -= 1
        if self._leases == 0 and self._close_pending:
            self._close_pending = False
            await self._close()

    async def aclose(self) -> None:
        """Close now, or once every lease is released."""
        if self._leases:
            self._close_pending = True
            return
        await self._close()

    async def _close(self) -> None:
        """Release transport resources. No-op by default."""


class TextExtractor(ABC):
    """Turns a document buffer into text. Synchronous; run in a worker thread."""

    @abstractmethod
    def extract_text(self, data: bytes, mime_type: str, file_name: str) -> str:
        """Return extracted text. May raise or return "" on failure."""
