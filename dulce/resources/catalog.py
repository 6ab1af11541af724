"""
Resource Catalog

Read-only list of the resources callers can read, one entry per
ResourceId, plus resolution of identifiers and full URIs.
"""

from dataclasses import dataclass
from typing import Dict, List, Union

from dulce.errors import NotFoundError
from dulce.models.enums import ResourceId


MIME_TYPE_JSON = "application/json"


@dataclass(frozen=True)
class CatalogEntry:
    resource_id: ResourceId
    name: str
    description: str
    mime_type: str = MIME_TYPE_JSON
    version: str = "1.0.0"

    def to_dict(self, uri_prefix: str) -> Dict[str, str]:
        return {
            "uri": f"{uri_prefix}{self.resource_id.value}",
            "name": self.name,
            "description": self.description,
            "mimeType": self.mime_type,
            "version": self.version,
        }


RESOURCE_CATALOG: Dict[ResourceId, CatalogEntry] = {
    entry.resource_id: entry
    for entry in (
        CatalogEntry(
            ResourceId.PRODUCTS_INDEX,
            "Products Index",
            "Compact product list with stock levels and prices",
        ),
        CatalogEntry(
            ResourceId.RECIPES_INDEX,
            "Recipes Index",
            "Compact recipe list with cost, price and categories",
        ),
        CatalogEntry(
            ResourceId.PERSONS_INDEX,
            "Persons Index",
            "Clients and providers by display name and type (no contact data)",
        ),
        CatalogEntry(
            ResourceId.CATEGORIES_INDEX,
            "Categories Index",
            "Recipe categories",
        ),
        CatalogEntry(
            ResourceId.MEASURES_INDEX,
            "Measures Index",
            "Units of measure used by products",
        ),
        CatalogEntry(
            ResourceId.MOVEMENTS_LAST_30D,
            "Movements (last 30 days)",
            "Purchases and sales aggregated by day and type",
        ),
        CatalogEntry(
            ResourceId.CLIENTS_RECENT,
            "Recent Clients",
            "Clients with purchases in the last 30 days, most recent first",
        ),
        CatalogEntry(
            ResourceId.VERSION_MANIFEST,
            "Version Manifest",
            "ETags and data versions of every cached resource",
        ),
    )
}


def list_catalog(uri_prefix: str) -> List[Dict[str, str]]:
    """Catalog entries as dicts, in ResourceId declaration order."""
    return [RESOURCE_CATALOG[rid].to_dict(uri_prefix) for rid in ResourceId]


def resolve_resource(value: Union[ResourceId, str], uri_prefix: str) -> ResourceId:
    """
    Resolve an identifier or full URI to a ResourceId.

    Raises:
        NotFoundError: If the resource is not in the catalog
    """
    if isinstance(value, ResourceId):
        return value

    identifier = value.strip()
    if identifier.startswith(uri_prefix):
        identifier = identifier[len(uri_prefix):]

    try:
        return ResourceId(identifier)
    except ValueError:
        raise NotFoundError("resource", value) from None
