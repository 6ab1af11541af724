"""
In-Process Resource Cache

Single authoritative store of computed resource payloads, keyed by
resource identifier.

- TTL expiry checked lazily on read (no background sweep)
- Explicit dirty flags that force a miss regardless of remaining TTL
- Per-identifier version counters that survive eviction and clear()
- Content-derived ETags over the canonical serialization
- Soft size budget: oversized entries are logged, never rejected

The manager answers "do I have fresh data"; whether the caller already
has that data (If-None-Match) is decided by the resource provider.
"""

import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Set, Union

from dulce.cache.config import CacheConfig, ResourceTTL, get_cache_config
from dulce.cache.headers import canonical_json, generate_etag
from dulce.models.enums import ResourceId
from dulce.utils.dates import format_http_date


logger = logging.getLogger(__name__)

Identifier = Union[ResourceId, str]


@dataclass(frozen=True)
class CacheEntry:
    """One computed read view. Replaced wholesale on every recomputation."""
    data: Any
    etag: str
    last_modified: str
    data_version: int
    computed_at: float
    size_bytes: int

    @property
    def last_modified_at(self) -> datetime:
        return datetime.fromtimestamp(self.computed_at, tz=timezone.utc)

    def age_seconds(self, now: float) -> float:
        return now - self.computed_at


def _key(identifier: Identifier) -> str:
    if isinstance(identifier, ResourceId):
        return identifier.value
    return str(identifier)


class CacheManager:
    """
    In-memory cache of projected resource payloads.

    Construct one per composition root and inject it into the providers;
    tests build isolated instances with a fake clock.

    All public operations hold a lock so the underlying maps stay
    consistent when called from worker threads. A get() followed by a
    set() is still not atomic: racing recomputations of the same resource
    are allowed, last writer wins and versions only move forward.
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or get_cache_config()
        self._ttl: ResourceTTL = self.config.ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._dirty: Set[str] = set()
        self._versions: Dict[str, int] = {}
        self._lock = threading.RLock()

    # =========================================================================
    # Core Operations
    # =========================================================================

    def ttl_for(self, identifier: Identifier) -> timedelta:
        """TTL configured for an identifier (default TTL if unknown)."""
        return self._ttl.for_resource(_key(identifier))

    def get(
        self,
        identifier: Identifier,
        if_none_match: Optional[str] = None,
        ttl: Optional[timedelta] = None,
    ) -> Optional[CacheEntry]:
        """
        Get a live entry.

        Returns None if:
        - No entry exists
        - Caching is disabled
        - The identifier is flagged dirty
        - The entry is older than its TTL (the entry is evicted)

        Otherwise the entry is returned whether or not if_none_match
        matches its ETag; comparing validators is the caller's job.
        """
        key = _key(identifier)
        if ttl is None:
            ttl = self.ttl_for(key)

        with self._lock:
            if not self.config.enabled:
                return None

            entry = self._entries.get(key)
            if entry is None:
                return None

            if key in self._dirty:
                logger.debug(f"Cache DIRTY MISS: {key}")
                return None

            if entry.age_seconds(self._clock()) > ttl.total_seconds():
                del self._entries[key]
                logger.debug(f"Cache EXPIRED: {key} (ttl={ttl.total_seconds():.0f}s)")
                return None

            return entry

    def set(self, identifier: Identifier, data: Any) -> CacheEntry:
        """
        Store freshly computed data for an identifier.

        Computes the ETag and size, stamps the timestamps, bumps the
        version counter and clears any dirty flag.
        """
        key = _key(identifier)
        serialized = canonical_json(data)
        size_bytes = len(serialized)
        etag = generate_etag(data)

        with self._lock:
            now = self._clock()
            data_version = self._versions.get(key, 0) + 1
            self._versions[key] = data_version

            entry = CacheEntry(
                data=data,
                etag=etag,
                last_modified=format_http_date(
                    datetime.fromtimestamp(now, tz=timezone.utc)
                ),
                data_version=data_version,
                computed_at=now,
                size_bytes=size_bytes,
            )

            if self.config.enabled:
                self._entries[key] = entry
            self._dirty.discard(key)

        logger.info(
            f"Cache SET: {key}, etag: {etag}, size: {size_bytes}B, version: {data_version}"
        )

        if size_bytes > self.config.entry_size_warning_bytes:
            logger.warning(
                f"Large cache entry: {key} "
                f"({size_bytes}B > {self.config.entry_size_warning_bytes}B)"
            )

        return entry

    def mark_dirty(self, identifier: Identifier) -> None:
        """Flag an identifier so its next get() misses. Idempotent."""
        key = _key(identifier)
        with self._lock:
            self._dirty.add(key)
        logger.info(f"Cache DIRTY: {key}")

    def invalidate(self, identifier: Identifier) -> bool:
        """Drop the entry for an identifier. Returns True if one existed."""
        key = _key(identifier)
        with self._lock:
            removed = self._entries.pop(key, None) is not None
            self._dirty.discard(key)
        if removed:
            logger.info(f"Cache INVALIDATED: {key}")
        return removed

    def clear(self) -> None:
        """
        Drop all entries and dirty flags.

        Version counters are kept so a version number is never reused for
        an identifier within the process lifetime.
        """
        with self._lock:
            self._entries.clear()
            self._dirty.clear()
        logger.info("Cache cleared")

    # =========================================================================
    # Introspection
    # =========================================================================

    def get_version_manifest(self) -> Dict[str, Dict[str, Any]]:
        """Snapshot of validators for every entry currently stored."""
        with self._lock:
            return {
                key: {
                    "etag": entry.etag,
                    "dataVersion": entry.data_version,
                    "lastModified": entry.last_modified,
                }
                for key, entry in sorted(self._entries.items())
            }

    def get_stats(self) -> Dict[str, int]:
        """Entry count, total payload size and dirty flag count."""
        with self._lock:
            return {
                "entryCount": len(self._entries),
                "totalSizeBytes": sum(e.size_bytes for e in self._entries.values()),
                "dirtyCount": len(self._dirty),
            }

    def current_version(self, identifier: Identifier) -> int:
        """Last version issued for an identifier (0 if never set)."""
        with self._lock:
            return self._versions.get(_key(identifier), 0)

    def __contains__(self, identifier: Identifier) -> bool:
        with self._lock:
            return _key(identifier) in self._entries
