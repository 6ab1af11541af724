"""
Resource Layer

Cached, conditionally readable views over the document store:
- ResourceRegistry: composition root owning the cache and the providers
- ResourceProvider: check cache -> fetch -> project -> cache -> respond
- VersionManifestProvider: validators of every cached resource
- RESOURCE_CATALOG: the read-only list of resources exposed to callers
"""

from .catalog import RESOURCE_CATALOG, CatalogEntry, list_catalog, resolve_resource
from .base import ResourceProvider, ResourceResult, ResultStatus, NOT_MODIFIED_TEXT
from .providers import (
    PROVIDER_CLASSES,
    ProductsIndexProvider,
    RecipesIndexProvider,
    PersonsIndexProvider,
    CategoriesIndexProvider,
    MeasuresIndexProvider,
    MovementsLast30DProvider,
    ClientsRecentProvider,
)
from .manifest import VersionManifestProvider
from .registry import ResourceRegistry, COLLECTION_DEPENDENTS, DEFAULT_URI_PREFIX

__all__ = [
    # Catalog
    "RESOURCE_CATALOG",
    "CatalogEntry",
    "list_catalog",
    "resolve_resource",
    # Providers
    "ResourceProvider",
    "ResourceResult",
    "ResultStatus",
    "NOT_MODIFIED_TEXT",
    "PROVIDER_CLASSES",
    "ProductsIndexProvider",
    "RecipesIndexProvider",
    "PersonsIndexProvider",
    "CategoriesIndexProvider",
    "MeasuresIndexProvider",
    "MovementsLast30DProvider",
    "ClientsRecentProvider",
    "VersionManifestProvider",
    # Registry
    "ResourceRegistry",
    "COLLECTION_DEPENDENTS",
    "DEFAULT_URI_PREFIX",
]
