"""
Shared test helpers for ferret.

FakeBackend is an in-memory DirectoryBackend: sites, containers, items and
content are plain dicts, every call is recorded, and probe failures or delays
can be injected per container.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

from adapters.interfaces import DirectoryBackend, TextExtractor
from models import (
    ContainerRef,
    ContiguousBytes,
    ErrorKind,
    FerretError,
    ItemMetadata,
    RawContent,
    Site,
)


def site(site_id: str, display_name: str, web_url: str = "") -> Site:
    return Site(
        id=site_id,
        display_name=display_name,
        web_url=web_url or f"https://contoso.sharepoint.com/sites/{site_id}",
    )


def container(
    container_id: str,
    name: str = "Documents",
    container_type: str = "documentLibrary",
    web_url: str = "",
) -> ContainerRef:
    return ContainerRef(
        id=container_id,
        name=name,
        container_type=container_type,
        web_url=web_url or f"https://contoso.sharepoint.com/{container_id}",
    )


def personal(container_id: str, name: str = "OneDrive") -> ContainerRef:
    return ContainerRef(
        id=container_id,
        name=name,
        container_type="personal",
        web_url=f"https://contoso-my.sharepoint.com/personal/{container_id}/Documents",
    )


def item(
    item_id: str,
    name: str = "report.docx",
    mime_type: str | None = "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    size: int = 1024,
    is_folder: bool = False,
) -> ItemMetadata:
    return ItemMetadata(id=item_id, name=name, size=size, mime_type=mime_type, is_folder=is_folder)


def not_found(container_id: str = "") -> FerretError:
    return FerretError(ErrorKind.NOT_FOUND, f"itemNotFound in {container_id}", {"status": 404})


def forbidden(container_id: str = "") -> FerretError:
    return FerretError(ErrorKind.PERMISSION_DENIED, f"accessDenied in {container_id}", {"status": 403})


def auth_expired() -> FerretError:
    return FerretError(ErrorKind.AUTH_EXPIRED, "InvalidAuthenticationToken", {"status": 401})


@dataclass
class FakeBackend(DirectoryBackend):
    """In-memory directory. Unknown items raise NOT_FOUND like Graph does."""

    sites: list[Site] = field(default_factory=list)
    containers: dict[str, list[ContainerRef]] = field(default_factory=dict)
    own: list[ContainerRef] = field(default_factory=list)
    items: dict[tuple[str, str], ItemMetadata] = field(default_factory=dict)
    content: dict[str, RawContent] = field(default_factory=dict)
    probe_errors: dict[str, BaseException] = field(default_factory=dict)
    probe_delays: dict[str, float] = field(default_factory=dict)
    site_errors: dict[str, BaseException] = field(default_factory=dict)
    list_sites_error: BaseException | None = None
    own_error: BaseException | None = None
    content_error: BaseException | None = None
    calls: list[tuple[Any, ...]] = field(default_factory=list)
    probed: list[str] = field(default_factory=list)
    closed: bool = False

    def put_item(self, container_id: str, metadata: ItemMetadata, data: bytes | RawContent | None = None) -> None:
        self.items[(container_id, metadata.id)] = metadata
        if data is not None:
            self.content[metadata.id] = ContiguousBytes(data) if isinstance(data, bytes) else data

    async def list_sites(self, filter_expr: str) -> list[Site]:
        self.calls.append(("list_sites", filter_expr))
        if self.list_sites_error is not None:
            raise self.list_sites_error
        if filter_expr == "*":
            return list(self.sites)
        query = filter_expr.lower()
        return [s for s in self.sites if query in s.display_name.lower() or query in s.web_url.lower()]

    async def list_containers(self, site_id: str) -> list[ContainerRef]:
        self.calls.append(("list_containers", site_id))
        if site_id in self.site_errors:
            raise self.site_errors[site_id]
        return list(self.containers.get(site_id, []))

    async def list_own_containers(self) -> list[ContainerRef]:
        self.calls.append(("list_own_containers",))
        if self.own_error is not None:
            raise self.own_error
        return list(self.own)

    async def get_item_metadata(self, container_id: str, item_id: str) -> ItemMetadata:
        self.calls.append(("get_item_metadata", container_id, item_id))
        self.probed.append(container_id)
        if self.closed:
            raise RuntimeError("Cannot send a request, as the client has been closed.")
        delay = self.probe_delays.get(container_id)
        if delay:
            await asyncio.sleep(delay)
        if container_id in self.probe_errors:
            raise self.probe_errors[container_id]
        metadata = self.items.get((container_id, item_id))
        if metadata is None:
            raise not_found(container_id)
        return metadata

    async def get_item_content(self, container_id: str, item_id: str) -> RawContent:
        self.calls.append(("get_item_content", container_id, item_id))
        if self.content_error is not None:
            raise self.content_error
        return self.content.get(item_id, ContiguousBytes(b""))

    async def _close(self) -> None:
        self.closed = True

    def count(self, method: str) -> int:
        return sum(1 for call in self.calls if call[0] == method)


class StaticExtractor(TextExtractor):
    """TextExtractor stand-in returning fixed text (or raising)."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.calls: list[tuple[bytes, str, str]] = []

    def extract_text(self, data: bytes, mime_type: str, file_name: str) -> str:
        self.calls.append((data, mime_type, file_name))
        if self.error is not None:
            raise self.error
        return self.text
