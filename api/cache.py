"""
Cache Management API

Provides endpoints for cache monitoring and manual operations.

Endpoints:
- Statistics for dashboard insights
- Invalidation of one resource or of everything computed from a collection
- Full clear (versions are kept, so readers still see increasing versions)
"""

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from api.dependencies import get_registry
from dulce.auth.api_key import require_api_key
from dulce.errors import DulceError
from dulce.resources.registry import COLLECTION_DEPENDENTS, ResourceRegistry


logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/cache",
    tags=["Cache Management"],
    dependencies=[Depends(require_api_key)],
)


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class CacheStatsResponse(BaseModel):
    """Cache statistics response."""
    entryCount: int
    totalSizeBytes: int
    dirtyCount: int
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class InvalidationResponse(BaseModel):
    """Cache invalidation response."""
    success: bool
    invalidated: List[str] = []


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("/stats", response_model=CacheStatsResponse)
def get_cache_stats(registry: ResourceRegistry = Depends(get_registry)):
    """Get current cache statistics."""
    return CacheStatsResponse(**registry.stats())


@router.post("/invalidate/collection/{collection}", response_model=InvalidationResponse)
def invalidate_collection(collection: str, registry: ResourceRegistry = Depends(get_registry)):
    """
    Mark dirty every resource computed from a collection.

    Call this after writing to the store, e.g. after recording a sale.
    """
    if collection not in COLLECTION_DEPENDENTS:
        raise HTTPException(status_code=404, detail=f'Unknown collection "{collection}"')

    invalidated = registry.invalidate_collection(collection)
    return InvalidationResponse(success=True, invalidated=[r.value for r in invalidated])


@router.post("/invalidate/{identifier}", response_model=InvalidationResponse)
def invalidate_resource(identifier: str, registry: ResourceRegistry = Depends(get_registry)):
    """Mark one resource dirty; its next read recomputes."""
    try:
        resource_id = registry.invalidate(identifier)
    except DulceError as e:
        raise HTTPException(status_code=e.http_status, detail=e.message)

    logger.info(f"Invalidated {resource_id.value} on request")
    return InvalidationResponse(success=True, invalidated=[resource_id.value])


@router.post("/clear", response_model=InvalidationResponse)
def clear_cache(registry: ResourceRegistry = Depends(get_registry)):
    """
    Drop every cached entry.

    CAUTION: every resource recomputes on its next read.
    """
    registry.clear()
    logger.warning("Cache cleared on request")
    return InvalidationResponse(success=True)
