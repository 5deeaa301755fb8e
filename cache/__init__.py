"""
Cache: shared resolution/content cache and single-flight group.

The cache is the only mutable state shared across requests. Both shared
instances are process-wide (lru_cache getters, same pattern as the
service getters in adapters/).
"""

from functools import lru_cache

from graph_config import CACHE_MAX_CONTENT_BYTES, CACHE_MAX_CONTENT_ENTRIES, CACHE_TTL_SECONDS

from .store import CacheKeys, ResolutionCache, matches_pattern
from .singleflight import SingleFlight


@lru_cache(maxsize=1)
def get_shared_cache() -> ResolutionCache:
    """Process-wide resolution/content cache (cached, thread-safe)."""
    return ResolutionCache(
        ttl_seconds=CACHE_TTL_SECONDS,
        max_content_entries=CACHE_MAX_CONTENT_ENTRIES,
        max_content_bytes=CACHE_MAX_CONTENT_BYTES,
    )


@lru_cache(maxsize=1)
def get_single_flight() -> SingleFlight:
    """Process-wide single-flight group."""
    return SingleFlight()


def reset_shared_state() -> None:
    """Drop the shared instances. Useful for testing."""
    get_shared_cache.cache_clear()
    get_single_flight.cache_clear()


__all__ = [
    "CacheKeys",
    "ResolutionCache",
    "SingleFlight",
    "matches_pattern",
    "get_shared_cache",
    "get_single_flight",
    "reset_shared_state",
]
