"""
Cache Configuration

Centralized configuration for the in-process resource cache.
TTLs are keyed by ResourceId and resolved once, when a provider is built.
"""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from functools import lru_cache
from typing import Dict, Union

from dulce.models.enums import ResourceId


DEFAULT_TTL = timedelta(seconds=60)


@dataclass(frozen=True)
class ResourceTTL:
    """
    Cache TTL configuration by resource.

    Frequently changing aggregates get short TTLs, rarely changing
    indexes get long ones. Anything not listed falls back to DEFAULT_TTL.
    """

    PRODUCTS_INDEX: timedelta = timedelta(seconds=60)
    RECIPES_INDEX: timedelta = timedelta(minutes=5)
    PERSONS_INDEX: timedelta = timedelta(minutes=15)
    CATEGORIES_INDEX: timedelta = timedelta(minutes=30)
    MEASURES_INDEX: timedelta = timedelta(minutes=30)
    MOVEMENTS_LAST_30D: timedelta = timedelta(seconds=60)
    CLIENTS_RECENT: timedelta = timedelta(minutes=5)

    def as_table(self) -> Dict[ResourceId, timedelta]:
        """TTL table keyed by ResourceId."""
        return {
            ResourceId.PRODUCTS_INDEX: self.PRODUCTS_INDEX,
            ResourceId.RECIPES_INDEX: self.RECIPES_INDEX,
            ResourceId.PERSONS_INDEX: self.PERSONS_INDEX,
            ResourceId.CATEGORIES_INDEX: self.CATEGORIES_INDEX,
            ResourceId.MEASURES_INDEX: self.MEASURES_INDEX,
            ResourceId.MOVEMENTS_LAST_30D: self.MOVEMENTS_LAST_30D,
            ResourceId.CLIENTS_RECENT: self.CLIENTS_RECENT,
        }

    def for_resource(self, resource: Union[ResourceId, str]) -> timedelta:
        """Get TTL for a resource, falling back to the default TTL."""
        try:
            resource = ResourceId(resource)
        except ValueError:
            return DEFAULT_TTL
        return self.as_table().get(resource, DEFAULT_TTL)


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


@dataclass
class CacheConfig:
    """
    Main cache configuration.

    Settings can be overridden via environment variables:
    - CACHE_ENABLED: Enable/disable caching globally
    - CACHE_ENTRY_SIZE_WARNING_BYTES: Soft budget per cache entry
    - RESOURCE_PAYLOAD_SIZE_WARNING_BYTES: Soft ceiling per projected payload
    - RESOURCE_SLOW_COMPUTATION_MS: Slow computation alarm threshold
    """

    # Global cache toggle; when disabled every read is a miss
    enabled: bool = field(default_factory=lambda: os.getenv(
        "CACHE_ENABLED",
        "true"
    ).lower() == "true")

    # Size budget alarm for a single cache entry (no eviction by size)
    entry_size_warning_bytes: int = field(default_factory=lambda: _env_int(
        "CACHE_ENTRY_SIZE_WARNING_BYTES",
        400 * 1024
    ))

    # Soft ceiling for a projected resource payload
    payload_size_warning_bytes: int = field(default_factory=lambda: _env_int(
        "RESOURCE_PAYLOAD_SIZE_WARNING_BYTES",
        512 * 1024
    ))

    # Computation time alarm, observability only
    slow_computation_ms: int = field(default_factory=lambda: _env_int(
        "RESOURCE_SLOW_COMPUTATION_MS",
        1000
    ))

    ttl: ResourceTTL = field(default_factory=ResourceTTL)


@lru_cache(maxsize=1)
def get_cache_config() -> CacheConfig:
    """Get singleton cache configuration."""
    return CacheConfig()


# HTTP Cache-Control presets, by how often the underlying view changes
HTTP_CACHE_PRESETS = {
    "stable": {
        # Indexes that rarely change (categories, measures, persons)
        "max_age": 300,
        "stale_while_revalidate": 600,
        "public": False,
    },
    "volatile": {
        # Aggregates over recent activity (products stock, movements)
        "max_age": 30,
        "stale_while_revalidate": 60,
        "public": False,
    },
    "realtime": {
        # Cache introspection (version manifest)
        "max_age": 0,
        "no_store": True,
    },
}
