"""
LocatorService: the external interface over resolve, locate and fetch.

Wires the cache and single-flight group around the search tools:

    cache hit?  → return it (cache_hit=True)
    otherwise   → single-flight(key) → search → cache put

Concurrent identical requests share one search. The cache is the only state
shared between requests. Cache entries and flights are scoped by owner (the
caller's credential fingerprint), so callers only share work done with the
same token. A shared search holds a lease on the backend it runs on, so the
caller that started it can go away without closing the client under it.
"""

from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import TypeVar

from adapters.interfaces import DirectoryBackend
from cache import CacheKeys, ResolutionCache, SingleFlight, get_shared_cache, get_single_flight
from graph_config import (
    ABORT_ON_AUTH_EXPIRED,
    CACHE_CONTENT,
    MAX_FILE_SIZE_BYTES,
    PROBE_BATCH_SIZE,
    PROBE_TIMEOUT_SECONDS,
)
from logging_config import logger
from models import CacheStats, ContainerRef, FetchResult, Location, ResolutionNotFound
from validation import normalize_name, validate_resource_id

from .candidates import enumerate_candidates
from .fetch.content import fetch_located
from .fetch.pipeline import FETCH_MODES, Extractors, FetchMode
from .locate import locate
from .resolve import resolve_container

T = TypeVar("T")


class LocatorService:
    """Resolve names, locate resources, fetch content. All cached."""

    def __init__(
        self,
        backend: DirectoryBackend,
        cache: ResolutionCache | None = None,
        single_flight: SingleFlight | None = None,
        extractors: Extractors | None = None,
        *,
        probe_timeout: float | None = PROBE_TIMEOUT_SECONDS,
        probe_batch_size: int = PROBE_BATCH_SIZE,
        cache_content: bool = CACHE_CONTENT,
        max_file_size: int = MAX_FILE_SIZE_BYTES,
        abort_on_auth_expired: bool = ABORT_ON_AUTH_EXPIRED,
        owner: str = "",
    ):
        self._backend = backend
        self._owner = owner
        self._cache = cache if cache is not None else get_shared_cache()
        self._flights = single_flight if single_flight is not None else get_single_flight()
        self._extractors = extractors
        self._probe_timeout = probe_timeout
        self._probe_batch_size = probe_batch_size
        self._cache_content = cache_content
        self._max_file_size = max_file_size
        self._abort_on_auth_expired = abort_on_auth_expired

    def _shared(self, key: str, work: Callable[[], Awaitable[T]]) -> Awaitable[T]:
        """Run work in this owner's single-flight slot for key, leasing the backend."""
        flight_key = f"{self._owner}|{key}" if self._owner else key

        def start() -> Awaitable[T]:
            # Taken before the first await: the caller may be cancelled right after
            self._backend.retain()
            return self._leased(work)

        return self._flights.run(flight_key, start)

    async def _leased(self, work: Callable[[], Awaitable[T]]) -> T:
        try:
            return await work()
        finally:
            await self._backend.release()

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve_container(self, name: str, scope_hint: str | None = None) -> ContainerRef:
        """
        Resolve a site/container name to one container.

        Raises:
            ResolutionNotFound: Nothing matched
        """
        name = normalize_name(name)
        key = CacheKeys.site(name, scope_hint)

        cached = self._cache.get(key, self._owner)
        if isinstance(cached, ContainerRef):
            logger.debug(f"Cache hit: {key} → {cached.id}")
            return cached

        async def work() -> ContainerRef:
            container = await resolve_container(self._backend, name, scope_hint)
            self._cache.put(key, container, self._owner)
            return container

        return await self._shared(key, work)

    async def locate_resource(self, resource_id: str, container_hint: str | None = None) -> Location:
        """
        Find the container holding resource_id.

        Args:
            resource_id: Opaque item ID
            container_hint: Optional site/container name, searched first

        Raises:
            ResourceNotAccessible: No candidate reported the item
        """
        resource_id = validate_resource_id(resource_id)
        key = CacheKeys.item(resource_id, container_hint)

        cached = self._cache.get(key, self._owner)
        if isinstance(cached, Location):
            logger.debug(f"Cache hit: {key} → {cached.container.id}")
            return replace(cached, cache_hit=True)

        async def work() -> Location:
            location = await self._locate_uncached(resource_id, container_hint)
            self._cache.put(key, location, self._owner)
            return location

        return await self._shared(key, work)

    async def _locate_uncached(self, resource_id: str, container_hint: str | None) -> Location:
        explicit: list[ContainerRef] = []
        if container_hint:
            try:
                explicit.append(await self.resolve_container(container_hint))
            except ResolutionNotFound as e:
                logger.info(f"{e.message}; searching all containers")

        candidates = await enumerate_candidates(
            self._backend,
            explicit=explicit,
            known=self._cache.known_containers(owner=self._owner),
        )
        return await locate(
            resource_id,
            candidates,
            self._backend,
            timeout=self._probe_timeout,
            batch_size=self._probe_batch_size,
            abort_on_auth_expired=self._abort_on_auth_expired,
        )

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    async def fetch_content(
        self,
        resource_id: str,
        *,
        extract_text: bool = False,
        mode: FetchMode = "binary",
        container_hint: str | None = None,
    ) -> FetchResult:
        """
        Locate a resource and return its content.

        Args:
            resource_id: Opaque item ID
            extract_text: Attempt structured text extraction
            mode: "binary" (default) or "text"
            container_hint: Optional site/container name, searched first

        Raises:
            ValueError: Unknown mode or malformed ID
            ResourceNotAccessible: Not found anywhere
            ContentRetrievalFailed: Folder, failed download, or zero bytes
        """
        if mode not in FETCH_MODES:
            raise ValueError(f"mode must be one of {', '.join(FETCH_MODES)}, got {mode!r}")
        resource_id = validate_resource_id(resource_id)
        key = CacheKeys.content(resource_id, mode, extract_text)

        if self._cache_content:
            cached = self._cache.get(key, self._owner)
            if isinstance(cached, FetchResult):
                logger.debug(f"Cache hit: {key}")
                return replace(cached, cache_hit=True)

        async def work() -> FetchResult:
            location = await self.locate_resource(resource_id, container_hint)
            result = await fetch_located(
                self._backend,
                resource_id,
                location,
                extract_text=extract_text,
                mode=mode,
                extractors=self._extractors,
                max_file_size=self._max_file_size,
            )
            if self._cache_content:
                self._cache.put(key, result, self._owner)
            return result

        return await self._shared(key, work)

    # ------------------------------------------------------------------
    # Cache management
    # ------------------------------------------------------------------

    def invalidate(self, pattern: str) -> int:
        """Drop cache entries matching pattern (glob or substring). Returns count."""
        if not pattern or not pattern.strip():
            raise ValueError("pattern is required")
        return self._cache.invalidate(pattern.strip())

    def clear_cache(self) -> int:
        return self._cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self._cache.stats()
