"""
Microsoft Graph adapter: sites, drives, and drive items over httpx.

Thin wrapper: every call maps one Graph endpoint to one model type.
No search or fallback logic lives here; that's in tools/.

Endpoints:
- GET /sites?search={q}                    → list_sites
- GET /sites/{site_id}/drives              → list_containers
- GET /me/drives                           → list_own_containers
- GET /drives/{drive_id}/items/{item_id}   → get_item_metadata
- GET /drives/{drive_id}/items/{item_id}/content (302 → download URL)
"""

from collections.abc import AsyncIterator
from typing import Any

import httpx

from adapters.interfaces import DirectoryBackend
from adapters.services import build_graph_client
from graph_config import MAX_PAGES, STREAMING_THRESHOLD_BYTES
from logging_config import log_api_call, log_api_result, logger
from models import ChunkedStream, ContainerRef, ContiguousBytes, ItemMetadata, RawContent, Site
from retry import _convert_to_ferret_error, with_retry
from validation import sanitize_search_query

# Graph pagination link
_NEXT_LINK = "@odata.nextLink"


def _parse_site(raw: dict[str, Any]) -> Site:
    return Site(
        id=raw["id"],
        display_name=raw.get("displayName") or raw.get("name") or "",
        web_url=raw.get("webUrl", ""),
        name=raw.get("name", ""),
    )


def _parse_drive(raw: dict[str, Any], site_id: str | None = None) -> ContainerRef:
    return ContainerRef(
        id=raw["id"],
        name=raw.get("name", ""),
        container_type=raw.get("driveType", "documentLibrary"),
        web_url=raw.get("webUrl", ""),
        site_id=site_id,
    )


def _parse_item(raw: dict[str, Any], container_id: str) -> ItemMetadata:
    parent = raw.get("parentReference") or {}
    return ItemMetadata(
        id=raw["id"],
        name=raw.get("name", ""),
        size=int(raw.get("size") or 0),
        mime_type=(raw.get("file") or {}).get("mimeType"),
        is_folder="folder" in raw,
        web_url=raw.get("webUrl", ""),
        container_id=parent.get("driveId") or container_id,
        parent_path=parent.get("path"),
        modified_time=raw.get("lastModifiedDateTime"),
    )


class GraphBackend(DirectoryBackend):
    """DirectoryBackend over the Microsoft Graph REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        max_pages: int = MAX_PAGES,
        streaming_threshold: int = STREAMING_THRESHOLD_BYTES,
    ):
        self._client = client
        self._max_pages = max_pages
        self._streaming_threshold = streaming_threshold

    @classmethod
    def from_token(
        cls,
        access_token: str,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "GraphBackend":
        """Build a backend with its own client for one caller token."""
        return cls(build_graph_client(access_token, transport=transport))

    async def _close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    @with_retry(max_attempts=3, delay_ms=1000)
    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        response = await self._client.get(url, params=params)
        response.raise_for_status()
        data: dict[str, Any] = response.json()
        return data

    async def _get_all_pages(
        self, url: str, params: dict[str, str] | None = None
    ) -> list[dict[str, Any]]:
        """Collect "value" arrays across @odata.nextLink pages (bounded)."""
        items: list[dict[str, Any]] = []
        next_url: str | None = url
        page = 0

        while next_url and page < self._max_pages:
            # nextLink already carries the query string
            data = await self._get_json(next_url, params if page == 0 else None)
            items.extend(data.get("value", []))
            next_url = data.get(_NEXT_LINK)
            page += 1

        if next_url:
            logger.warning(f"Pagination stopped at {self._max_pages} pages for {url}")
        log_api_result(url, len(items), pages=page)
        return items

    @with_retry(max_attempts=3, delay_ms=1000)
    async def _open_content(self, container_id: str, item_id: str) -> httpx.Response:
        request = self._client.build_request(
            "GET", f"/drives/{container_id}/items/{item_id}/content"
        )
        response = await self._client.send(request, stream=True, follow_redirects=True)
        if response.is_error:
            await response.aread()
            await response.aclose()
            response.raise_for_status()
        return response

    @staticmethod
    async def _iter_response(response: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        finally:
            await response.aclose()

    # ------------------------------------------------------------------
    # DirectoryBackend
    # ------------------------------------------------------------------

    async def list_sites(self, filter_expr: str) -> list[Site]:
        query = sanitize_search_query(filter_expr) or "*"
        log_api_call("list_sites", "/sites", search=query)
        raw = await self._get_all_pages("/sites", {"search": query})
        return [_parse_site(s) for s in raw]

    async def list_containers(self, site_id: str) -> list[ContainerRef]:
        path = f"/sites/{site_id}/drives"
        log_api_call("list_containers", path)
        raw = await self._get_all_pages(path)
        return [_parse_drive(d, site_id=site_id) for d in raw]

    async def list_own_containers(self) -> list[ContainerRef]:
        log_api_call("list_own_containers", "/me/drives")
        raw = await self._get_all_pages("/me/drives")
        return [_parse_drive(d) for d in raw]

    async def get_item_metadata(self, container_id: str, item_id: str) -> ItemMetadata:
        path = f"/drives/{container_id}/items/{item_id}"
        log_api_call("get_item_metadata", path)
        raw = await self._get_json(path)
        return _parse_item(raw, container_id)

    async def get_item_content(self, container_id: str, item_id: str) -> RawContent:
        """
        Download item content.

        Small responses (by Content-Length) are read fully and returned as
        ContiguousBytes. Large or unsized responses are handed back as a
        ChunkedStream; the stream closes the response once drained.
        """
        log_api_call("get_item_content", f"/drives/{container_id}/items/{item_id}/content")
        response = await self._open_content(container_id, item_id)

        length = response.headers.get("content-length")
        if length is not None and int(length) <= self._streaming_threshold:
            try:
                data = await response.aread()
            except httpx.HTTPError as e:
                raise _convert_to_ferret_error(e) from e
            finally:
                await response.aclose()
            log_api_result(f"/drives/{container_id}/items/{item_id}/content", size=len(data))
            return ContiguousBytes(data)

        logger.debug(f"Streaming content for {item_id} (length: {length or 'unknown'})")
        return ChunkedStream(self._iter_response(response))
