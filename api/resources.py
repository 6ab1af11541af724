"""
Resources API

Catalog listing and conditional resource reads.

Identifiers contain "#" (e.g. products#index) and must be percent-encoded
in the path: GET /resources/products%23index
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse, Response

from api.dependencies import get_registry
from dulce.auth.api_key import require_api_key
from dulce.cache.config import HTTP_CACHE_PRESETS
from dulce.cache.headers import CacheHeadersBuilder, not_modified_response
from dulce.errors import HTTP_STATUS_BY_CODE
from dulce.models.enums import ResourceId
from dulce.resources.base import ResourceResult
from dulce.resources.registry import ResourceRegistry


logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/resources",
    tags=["Resources"],
    dependencies=[Depends(require_api_key)],
)


# Cache-Control preset per resource, by how often the view changes
RESOURCE_PRESETS: Dict[ResourceId, str] = {
    ResourceId.PRODUCTS_INDEX: "volatile",
    ResourceId.RECIPES_INDEX: "stable",
    ResourceId.PERSONS_INDEX: "stable",
    ResourceId.CATEGORIES_INDEX: "stable",
    ResourceId.MEASURES_INDEX: "stable",
    ResourceId.MOVEMENTS_LAST_30D: "volatile",
    ResourceId.CLIENTS_RECENT: "volatile",
    ResourceId.VERSION_MANIFEST: "realtime",
}


def build_cache_headers(result: ResourceResult) -> Dict[str, str]:
    """Cache-Control and validator headers for a successful read."""
    preset = HTTP_CACHE_PRESETS[RESOURCE_PRESETS.get(result.resource_id, "volatile")]

    builder = CacheHeadersBuilder()
    if preset.get("no_store"):
        builder.no_store()
    else:
        builder.max_age(preset["max_age"]).stale_while_revalidate(preset["stale_while_revalidate"])
        if preset.get("public"):
            builder.public()
        # Responses differ per API key
        builder.vary(["Authorization"])

    return (builder
            .etag_value(result.etag)
            .last_modified(result.last_modified_at)
            .data_version(result.data_version)
            .build())


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("")
async def list_resources(registry: ResourceRegistry = Depends(get_registry)) -> Dict[str, Any]:
    """List every resource in the catalog."""
    return {"resources": registry.catalog()}


@router.get("/{identifier}")
async def read_resource(
    identifier: str,
    registry: ResourceRegistry = Depends(get_registry),
    if_none_match: Optional[str] = Header(default=None),
    if_modified_since: Optional[str] = Header(default=None),
) -> Response:
    """
    Read one resource.

    Send the last ETag seen in If-None-Match; an unchanged resource
    answers 304 with no body.
    """
    result = await registry.read(
        identifier,
        if_none_match=if_none_match,
        if_modified_since=if_modified_since,
    )

    if result.error is not None:
        status_code = HTTP_STATUS_BY_CODE.get(result.error_code, 500)
        return JSONResponse(status_code=status_code, content=result.error)

    headers = build_cache_headers(result)

    if result.not_modified:
        return not_modified_response(result.etag, headers)

    return JSONResponse(content=result.to_payload(), headers=headers)
