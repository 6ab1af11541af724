"""
Version Manifest

Validators for every cached resource in one read, so a caller tracking
many resources can find the stale ones without reading each of them.

The manifest is computed on every read and never cached itself. Its ETag
covers the manifest and the stats but not generatedAt, so an unchanged
cache answers "not modified".
"""

import logging
from typing import Optional

from dulce.cache.headers import etags_match, generate_etag
from dulce.cache.manager import CacheManager
from dulce.errors import ErrorCode, create_error_response
from dulce.models.enums import ResourceId
from dulce.resources.base import ResourceResult, ResultStatus, utcnow
from dulce.utils.dates import format_http_date


logger = logging.getLogger(__name__)


class VersionManifestProvider:
    resource_id = ResourceId.VERSION_MANIFEST

    def __init__(self, cache: CacheManager, uri_prefix: str, now=utcnow):
        self.cache = cache
        self.uri = f"{uri_prefix}{self.resource_id.value}"
        self.now = now

    async def get(
        self,
        if_none_match: Optional[str] = None,
        if_modified_since: Optional[str] = None,
    ) -> ResourceResult:
        try:
            manifest = self.cache.get_version_manifest()
            stats = self.cache.get_stats()
            etag = generate_etag({"manifest": manifest, "stats": stats})
            generated_at = self.now()
        except Exception as e:
            logger.exception("Version manifest generation failed")
            return ResourceResult.failure(
                self.uri, self.resource_id,
                create_error_response(ErrorCode.INTERNAL, "Internal server error", e, self.uri),
            )

        status = ResultStatus.NOT_MODIFIED if etags_match(if_none_match, etag) else ResultStatus.OK
        data = None
        if status is ResultStatus.OK:
            data = {
                "manifest": manifest,
                "stats": stats,
                "generatedAt": generated_at.isoformat(),
            }

        return ResourceResult(
            uri=self.uri,
            resource_id=self.resource_id,
            status=status,
            data=data,
            etag=etag,
            last_modified=format_http_date(generated_at),
            last_modified_at=generated_at,
        )
