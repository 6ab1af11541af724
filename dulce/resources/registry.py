"""
Resource Registry

Composition root for the resource layer: owns one CacheManager and one
provider per resource, and routes reads and invalidations to them.

Invalidation is as narrow as possible. A write to a collection marks
dirty only the resources computed from that collection.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from dulce.cache.config import CacheConfig
from dulce.cache.manager import CacheManager
from dulce.errors import DulceError, ValidationError, error_response_from
from dulce.models.enums import ResourceId
from dulce.resources.base import ResourceProvider, ResourceResult, utcnow
from dulce.resources.catalog import list_catalog, resolve_resource
from dulce.resources.manifest import VersionManifestProvider
from dulce.resources.providers import PROVIDER_CLASSES
from dulce.store.base import DocumentStore


logger = logging.getLogger(__name__)

DEFAULT_URI_PREFIX = "mcp://estacion-dulce/"

# Which cached resources are computed from which collection
COLLECTION_DEPENDENTS: Dict[str, List[ResourceId]] = {
    "products": [ResourceId.PRODUCTS_INDEX],
    "recipes": [ResourceId.RECIPES_INDEX],
    "persons": [ResourceId.PERSONS_INDEX, ResourceId.CLIENTS_RECENT],
    "categories": [ResourceId.CATEGORIES_INDEX],
    "measures": [ResourceId.MEASURES_INDEX],
    "movements": [ResourceId.MOVEMENTS_LAST_30D, ResourceId.CLIENTS_RECENT],
}


class ResourceRegistry:
    """
    Builds and holds the providers for every resource in the catalog.

    Usage:
        registry = ResourceRegistry(store)
        result = await registry.read("products#index", if_none_match=etag)
        registry.invalidate_collection("movements")
    """

    def __init__(
        self,
        store: DocumentStore,
        cache: Optional[CacheManager] = None,
        config: Optional[CacheConfig] = None,
        uri_prefix: str = DEFAULT_URI_PREFIX,
        now=utcnow,
    ):
        self.store = store
        self.cache = cache or CacheManager(config=config)
        self.uri_prefix = uri_prefix

        self.providers: Dict[ResourceId, Union[ResourceProvider, VersionManifestProvider]] = {
            cls.resource_id: cls(store, self.cache, uri_prefix, config=config, now=now)
            for cls in PROVIDER_CLASSES
        }
        self.providers[ResourceId.VERSION_MANIFEST] = VersionManifestProvider(
            self.cache, uri_prefix, now=now,
        )

    # =========================================================================
    # Reads
    # =========================================================================

    def catalog(self) -> List[Dict[str, str]]:
        return list_catalog(self.uri_prefix)

    def resolve(self, resource: Union[ResourceId, str]) -> ResourceId:
        return resolve_resource(resource, self.uri_prefix)

    async def read(
        self,
        resource: Union[ResourceId, str],
        if_none_match: Optional[str] = None,
        if_modified_since: Optional[str] = None,
    ) -> ResourceResult:
        """Read a resource by identifier or URI. Unknown resources yield NOT_FOUND."""
        try:
            resource_id = self.resolve(resource)
        except DulceError as e:
            uri = str(resource)
            return ResourceResult.failure(
                uri, None,
                error_response_from(e, uri),
            )

        provider = self.providers[resource_id]
        return await provider.get(if_none_match=if_none_match, if_modified_since=if_modified_since)

    # =========================================================================
    # Invalidation
    # =========================================================================

    def invalidate(self, resource: Union[ResourceId, str]) -> ResourceId:
        """Mark one resource dirty. The version manifest is never cached and is rejected."""
        resource_id = self.resolve(resource)
        if resource_id is ResourceId.VERSION_MANIFEST:
            raise ValidationError(
                f"{resource_id.value} is computed on every read and cannot be invalidated",
                details={"resource": resource_id.value},
            )
        self.cache.mark_dirty(resource_id)
        return resource_id

    def invalidate_collection(self, collection: str) -> List[ResourceId]:
        """Mark dirty every resource computed from a collection."""
        dependents = COLLECTION_DEPENDENTS.get(collection, [])
        for resource_id in dependents:
            self.cache.mark_dirty(resource_id)
        logger.info(
            f"Invalidated {len(dependents)} resource(s) after change to {collection}"
        )
        return list(dependents)

    def clear(self) -> None:
        self.cache.clear()

    def stats(self) -> Dict[str, Any]:
        return self.cache.get_stats()
