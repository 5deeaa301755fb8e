"""
Resolution and content cache.

In-memory, process-wide. Holds three kinds of entries:
- site:{name}[@{scope}]            → ContainerRef (name resolutions)
- item:{resource_id}[@{hint}]      → Location (which container holds an item)
- content:{resource_id}:{mode}:{text|raw} → FetchResult

Every entry belongs to an owner (a credential fingerprint). Lookups only see
the caller's own entries, so one token never reads what another token found.
Invalidation patterns match keys across all owners.

Resolution entries live until explicitly invalidated or cleared. An optional
TTL can be configured; expired entries read as misses and are dropped on
access. Content entries are also bounded: past the entry or byte cap the
least recently used content entry is evicted.
"""

import fnmatch
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any

from logging_config import logger
from models import BinaryContent, CacheStats, ContainerRef, FetchResult, Location

_GLOB_CHARS = frozenset("*?[")

# (owner, key)
_Slot = tuple[str, str]


class CacheKeys:
    """Key builders. Keep every key format in one place."""

    CONTENT_PREFIX = "content:"

    @staticmethod
    def site(name: str, scope_hint: str | None = None) -> str:
        key = f"site:{name.strip().lower()}"
        return f"{key}@{scope_hint.strip().lower()}" if scope_hint else key

    @staticmethod
    def item(resource_id: str, container_hint: str | None = None) -> str:
        key = f"item:{resource_id}"
        return f"{key}@{container_hint.strip().lower()}" if container_hint else key

    @staticmethod
    def content(resource_id: str, mode: str, extract_text: bool) -> str:
        return f"{CacheKeys.CONTENT_PREFIX}{resource_id}:{mode}:{'text' if extract_text else 'raw'}"


@dataclass
class _Entry:
    value: Any
    stored_at: float


def matches_pattern(key: str, pattern: str) -> bool:
    """
    Glob match when the pattern has wildcards, substring match otherwise.

    "site:contoso*" matches "site:contoso" and "site:contoso-team@hr",
    not "site:fabrikam". "contoso" matches any key containing it.
    """
    if _GLOB_CHARS.intersection(pattern):
        return fnmatch.fnmatchcase(key, pattern)
    return pattern in key


def content_size(value: Any) -> int:
    """Bytes held by a cached content value (0 for anything else)."""
    if not isinstance(value, FetchResult):
        return 0
    if isinstance(value.content, BinaryContent):
        return len(value.content.data)
    return len(value.content.text.encode("utf-8"))


class ResolutionCache:
    """Thread-safe key/value cache with pattern invalidation."""

    def __init__(
        self,
        ttl_seconds: float | None = None,
        *,
        max_content_entries: int | None = None,
        max_content_bytes: int | None = None,
    ):
        self._ttl = ttl_seconds
        self._max_content_entries = max_content_entries
        self._max_content_bytes = max_content_bytes
        self._entries: dict[_Slot, _Entry] = {}
        # Content slots, least recently used first, with their byte sizes
        self._content_lru: OrderedDict[_Slot, int] = OrderedDict()
        self._content_bytes = 0
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _expired(self, entry: _Entry, now: float) -> bool:
        return self._ttl is not None and now - entry.stored_at > self._ttl

    def _drop(self, slot: _Slot) -> None:
        # Caller holds the lock
        del self._entries[slot]
        size = self._content_lru.pop(slot, None)
        if size is not None:
            self._content_bytes -= size

    def _over_content_cap(self) -> bool:
        if self._max_content_entries is not None and len(self._content_lru) > self._max_content_entries:
            return True
        return self._max_content_bytes is not None and self._content_bytes > self._max_content_bytes

    def get(self, key: str, owner: str = "") -> Any | None:
        """Return the cached value or None. Counts a hit or a miss."""
        slot = (owner, key)
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(slot)
            if entry is not None and self._expired(entry, now):
                self._drop(slot)
                entry = None
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            if slot in self._content_lru:
                self._content_lru.move_to_end(slot)
            return entry.value

    def put(self, key: str, value: Any, owner: str = "") -> None:
        """Store or refresh an entry. Content entries may evict older content."""
        slot = (owner, key)
        evicted: list[str] = []
        with self._lock:
            if slot in self._entries:
                self._drop(slot)
            self._entries[slot] = _Entry(value=value, stored_at=time.monotonic())
            if not key.startswith(CacheKeys.CONTENT_PREFIX):
                return
            size = content_size(value)
            self._content_lru[slot] = size
            self._content_bytes += size
            # The entry just stored is never its own victim
            while len(self._content_lru) > 1 and self._over_content_cap():
                oldest = next(iter(self._content_lru))
                self._drop(oldest)
                evicted.append(oldest[1])
        if evicted:
            logger.info(f"Evicted {len(evicted)} content entries: {', '.join(evicted)}")

    def invalidate(self, pattern: str) -> int:
        """Drop every entry whose key matches pattern, for every owner. Returns the count removed."""
        with self._lock:
            doomed = [slot for slot in self._entries if matches_pattern(slot[1], pattern)]
            for slot in doomed:
                self._drop(slot)
        logger.info(f"Invalidated {len(doomed)} cache entries matching {pattern!r}")
        return len(doomed)

    def clear(self) -> int:
        """Drop everything. Counters keep running. Returns the count removed."""
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            self._content_lru.clear()
            self._content_bytes = 0
        logger.info(f"Cleared {removed} cache entries")
        return removed

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(hits=self._hits, misses=self._misses, size=len(self._entries))

    def keys(self, owner: str | None = None) -> list[str]:
        """Stored keys, oldest first. All owners unless one is given."""
        with self._lock:
            return [key for entry_owner, key in self._entries if owner is None or entry_owner == owner]

    def content_bytes(self) -> int:
        with self._lock:
            return self._content_bytes

    def known_containers(self, scope_hint: str | None = None, owner: str = "") -> list[ContainerRef]:
        """
        Containers the owner already saw in cached resolutions and locations.

        With a scope hint, only entries whose key carries that scope count.
        Does not touch hit/miss counters. Order: oldest entry first.
        """
        scope = f"@{scope_hint.strip().lower()}" if scope_hint else None
        now = time.monotonic()
        seen: dict[str, ContainerRef] = {}
        with self._lock:
            for (entry_owner, key), entry in self._entries.items():
                if entry_owner != owner or self._expired(entry, now):
                    continue
                if scope is not None and not key.endswith(scope):
                    continue
                value = entry.value
                if isinstance(value, ContainerRef):
                    seen.setdefault(value.id, value)
                elif isinstance(value, Location):
                    seen.setdefault(value.container.id, value.container)
        return list(seen.values())
