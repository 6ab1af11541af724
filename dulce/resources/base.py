"""
Resource Provider Base

One provider per resource type. Each read follows the same contract:

1. Ask the cache for a live entry
2. Live entry whose ETag the caller already holds -> "not modified"
3. Live entry otherwise -> cached payload with its validators
4. Miss -> fetch from the store, project, cache, return as in 3
5. Oversized payloads and slow computations are logged, never rejected

A failed fetch or projection produces an error result and leaves the
cache exactly as it was.
"""

import enum
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from dulce.cache.config import CacheConfig
from dulce.cache.headers import etags_match
from dulce.cache.manager import CacheEntry, CacheManager
from dulce.errors import DulceError, ErrorCode, create_error_response
from dulce.models.enums import ResourceId
from dulce.resources.catalog import MIME_TYPE_JSON
from dulce.store.base import DocumentStore


logger = logging.getLogger(__name__)

NOT_MODIFIED_TEXT = "Not Modified"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ResultStatus(enum.Enum):
    OK = "ok"
    NOT_MODIFIED = "not_modified"
    ERROR = "error"


@dataclass
class ResourceResult:
    """Outcome of one resource read."""
    uri: str
    resource_id: Optional[ResourceId]
    status: ResultStatus
    data: Any = None
    etag: Optional[str] = None
    last_modified: Optional[str] = None
    last_modified_at: Optional[datetime] = None
    data_version: Optional[int] = None
    cache_hit: bool = False
    error: Optional[Dict[str, Any]] = None
    compute_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status is ResultStatus.OK

    @property
    def not_modified(self) -> bool:
        return self.status is ResultStatus.NOT_MODIFIED

    @property
    def error_code(self) -> Optional[ErrorCode]:
        if self.error is None:
            return None
        return ErrorCode(self.error["error"]["code"])

    @classmethod
    def from_entry(
        cls,
        uri: str,
        resource_id: ResourceId,
        entry: CacheEntry,
        status: ResultStatus = ResultStatus.OK,
        cache_hit: bool = False,
    ) -> "ResourceResult":
        return cls(
            uri=uri,
            resource_id=resource_id,
            status=status,
            data=None if status is ResultStatus.NOT_MODIFIED else entry.data,
            etag=entry.etag,
            last_modified=entry.last_modified,
            last_modified_at=entry.last_modified_at,
            data_version=entry.data_version,
            cache_hit=cache_hit,
        )

    @classmethod
    def failure(
        cls,
        uri: str,
        resource_id: Optional[ResourceId],
        error: Dict[str, Any],
    ) -> "ResourceResult":
        return cls(uri=uri, resource_id=resource_id, status=ResultStatus.ERROR, error=error)

    def text(self) -> str:
        if self.status is ResultStatus.NOT_MODIFIED:
            return NOT_MODIFIED_TEXT
        if self.status is ResultStatus.ERROR:
            return json.dumps(self.error)
        return json.dumps(self.data, indent=2, ensure_ascii=False)

    def to_payload(self) -> Dict[str, Any]:
        """Render in the resource-read protocol shape."""
        payload: Dict[str, Any] = {
            "contents": [{
                "type": "text",
                "text": self.text(),
                "uri": self.uri,
                "mimeType": MIME_TYPE_JSON,
            }],
        }
        if self.etag is not None:
            payload["etag"] = self.etag
        if self.last_modified is not None:
            payload["lastModified"] = self.last_modified
        if self.data_version is not None:
            payload["dataVersion"] = self.data_version
        return payload


class ResourceProvider(ABC):
    """
    Bridges the cache and the store-backed computation of one resource.

    Subclasses set `resource_id` and implement `compute()`, which must be
    a deterministic function of the store contents (sorted output).
    """

    resource_id: ResourceId

    def __init__(
        self,
        store: DocumentStore,
        cache: CacheManager,
        uri_prefix: str,
        config: Optional[CacheConfig] = None,
        now: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.cache = cache
        self.config = config or cache.config
        self.uri = f"{uri_prefix}{self.resource_id.value}"
        self.now = now
        # Resolved once; the TTL table is never consulted per request
        self.ttl: timedelta = self.config.ttl.for_resource(self.resource_id)

    @abstractmethod
    async def compute(self) -> List[Dict[str, Any]]:
        """Fetch raw entities from the store and project them."""

    async def get(
        self,
        if_none_match: Optional[str] = None,
        if_modified_since: Optional[str] = None,
    ) -> ResourceResult:
        """
        Read the resource with conditional-read semantics.

        if_modified_since is accepted for protocol compatibility; the ETag
        is the authoritative validator.
        """
        start = time.perf_counter()

        cached = self.cache.get(self.resource_id, if_none_match, ttl=self.ttl)

        if cached is not None and etags_match(if_none_match, cached.etag):
            logger.info(f"Cache HIT: {self.uri}, etag: {cached.etag} (not modified)")
            return ResourceResult.from_entry(
                self.uri, self.resource_id, cached,
                status=ResultStatus.NOT_MODIFIED, cache_hit=True,
            )

        if cached is not None:
            result = ResourceResult.from_entry(self.uri, self.resource_id, cached, cache_hit=True)
            result.compute_ms = (time.perf_counter() - start) * 1000
            logger.info(
                f"Resource {self.uri}: cacheHit=true, "
                f"computeMs={result.compute_ms:.1f}, sizeBytes={cached.size_bytes}"
            )
            return result

        logger.info(f"Cache MISS: {self.uri}, fetching from store")

        try:
            data = await self.compute()
        except DulceError as e:
            return ResourceResult.failure(
                self.uri, self.resource_id,
                create_error_response(e.code, e.message, e, self.uri),
            )
        except Exception as e:
            logger.exception(f"Resource {self.uri} computation failed")
            return ResourceResult.failure(
                self.uri, self.resource_id,
                create_error_response(ErrorCode.INTERNAL, "Internal server error", e, self.uri),
            )

        entry = self.cache.set(self.resource_id, data)
        compute_ms = (time.perf_counter() - start) * 1000

        if entry.size_bytes > self.config.payload_size_warning_bytes:
            logger.warning(
                f"Resource {self.uri} exceeds size limit: "
                f"{entry.size_bytes}B > {self.config.payload_size_warning_bytes}B"
            )

        logger.info(
            f"Resource {self.uri}: cacheHit=false, "
            f"computeMs={compute_ms:.1f}, sizeBytes={entry.size_bytes}"
        )
        if compute_ms > self.config.slow_computation_ms:
            logger.warning(f"Slow resource computation: {self.uri} took {compute_ms:.0f}ms")

        result = ResourceResult.from_entry(self.uri, self.resource_id, entry)
        result.compute_ms = compute_ms
        return result
