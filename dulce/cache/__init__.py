"""
Resource Caching Layer

In-process cache between the document-store aggregations and the
protocol layer, with HTTP-style conditional reads:
- CacheManager: entries keyed by resource identifier, TTL + dirty flags,
  monotonic data versions, content ETags
- ResourceTTL / CacheConfig: per-resource TTL table and size budgets
- headers: canonical JSON, ETag generation/matching, Cache-Control builder

Usage:
    cache = CacheManager()
    entry = cache.get(ResourceId.PRODUCTS_INDEX)
    if entry is None:
        entry = cache.set(ResourceId.PRODUCTS_INDEX, rows)
    if etags_match(if_none_match, entry.etag):
        ...  # not modified
"""

from dulce.cache.config import (
    CacheConfig,
    ResourceTTL,
    DEFAULT_TTL,
    HTTP_CACHE_PRESETS,
    get_cache_config,
)
from dulce.cache.headers import (
    canonical_json,
    generate_etag,
    parse_etag,
    etags_match,
    CacheHeadersBuilder,
    not_modified_response,
)
from dulce.cache.manager import CacheEntry, CacheManager

__all__ = [
    # Config
    "CacheConfig",
    "ResourceTTL",
    "DEFAULT_TTL",
    "HTTP_CACHE_PRESETS",
    "get_cache_config",
    # Headers
    "canonical_json",
    "generate_etag",
    "parse_etag",
    "etags_match",
    "CacheHeadersBuilder",
    "not_modified_response",
    # Manager
    "CacheEntry",
    "CacheManager",
]
