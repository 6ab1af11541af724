"""
ETags and HTTP Cache Headers

Canonical serialization, content-derived ETags, validator matching and
Cache-Control header building for conditional reads.

Conditional-read flow:
1. Payload is serialized canonically (sorted keys, compact separators)
2. ETag is the MD5 of those bytes, quoted
3. A caller echoing the ETag in If-None-Match gets "not modified"
"""

import enum
import hashlib
import json
import logging
from datetime import date, datetime
from typing import Any, List, Optional

from fastapi import Response
from pydantic import BaseModel

from dulce.utils.dates import format_http_date


logger = logging.getLogger(__name__)


def _default_handler(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    return str(obj)


def canonical_json(value: Any) -> bytes:
    """
    Serialize a value to its canonical byte form.

    Object keys are sorted so logically identical payloads always produce
    identical bytes, whatever order their keys were inserted in.
    """
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=_default_handler,
    ).encode("utf-8")


def generate_etag(data: Any, weak: bool = False) -> str:
    """
    Generate ETag from payload content.

    Args:
        data: Serializable payload
        weak: If True, generates a weak ETag (W/"...")

    Returns:
        ETag string with quotes
    """
    hash_value = hashlib.md5(canonical_json(data)).hexdigest()

    if weak:
        return f'W/"{hash_value}"'
    return f'"{hash_value}"'


def parse_etag(etag: str) -> str:
    """Parse ETag value, removing quotes and weak prefix."""
    if not etag:
        return ""

    etag = etag.strip()

    # Remove weak prefix
    if etag.startswith("W/"):
        etag = etag[2:]

    # Remove quotes
    return etag.strip('"')


def etags_match(
    request_etag: Optional[str],
    current_etag: str,
) -> bool:
    """
    Check if request ETag matches current ETag.

    Handles:
    - Strong comparison (exact match)
    - Weak comparison (ignores W/ prefix)
    - Multiple ETags in If-None-Match
    - Unquoted ETags sent by lenient clients
    """
    if not request_etag or not current_etag:
        return False

    current = parse_etag(current_etag)

    # Handle multiple ETags (comma-separated)
    for etag in request_etag.split(","):
        etag = etag.strip()

        # Handle wildcard
        if etag == "*":
            return True

        if parse_etag(etag) == current:
            return True

    return False


class CacheHeadersBuilder:
    """
    Fluent builder for HTTP cache headers.

    Usage:
        headers = (CacheHeadersBuilder()
            .max_age(60)
            .private()
            .etag_value(entry.etag)
            .last_modified(entry.last_modified_at)
            .data_version(entry.data_version)
            .build())
    """

    def __init__(self):
        self._max_age: int = 0
        self._swr: int = 0
        self._public: bool = False
        self._no_store: bool = False
        self._etag: Optional[str] = None
        self._last_modified: Optional[datetime] = None
        self._data_version: Optional[int] = None
        self._vary: List[str] = []

    def max_age(self, seconds: int) -> "CacheHeadersBuilder":
        """Set max-age directive."""
        self._max_age = seconds
        return self

    def stale_while_revalidate(self, seconds: int) -> "CacheHeadersBuilder":
        """Set stale-while-revalidate directive."""
        self._swr = seconds
        return self

    def public(self) -> "CacheHeadersBuilder":
        """Mark response as cacheable by shared caches."""
        self._public = True
        return self

    def private(self) -> "CacheHeadersBuilder":
        """Mark response as cacheable only by the caller."""
        self._public = False
        return self

    def no_store(self) -> "CacheHeadersBuilder":
        """Disable all caching."""
        self._no_store = True
        return self

    def etag_value(self, value: Optional[str]) -> "CacheHeadersBuilder":
        """Set pre-computed ETag value."""
        self._etag = value
        return self

    def last_modified(self, dt: Optional[datetime]) -> "CacheHeadersBuilder":
        """Set Last-Modified header."""
        self._last_modified = dt
        return self

    def data_version(self, version: Optional[int]) -> "CacheHeadersBuilder":
        """Set X-Data-Version header."""
        self._data_version = version
        return self

    def vary(self, headers: List[str]) -> "CacheHeadersBuilder":
        """Set Vary header for cache key variation."""
        self._vary.extend(headers)
        return self

    def build(self) -> dict:
        """Build headers dictionary."""
        headers = {}

        directives = []

        if self._no_store:
            directives.append("no-store")
        else:
            directives.append("public" if self._public else "private")

            if self._max_age > 0:
                directives.append(f"max-age={self._max_age}")
            else:
                directives.append("no-cache")

            if self._swr > 0:
                directives.append(f"stale-while-revalidate={self._swr}")

        headers["Cache-Control"] = ", ".join(directives)

        if self._etag:
            headers["ETag"] = self._etag

        if self._last_modified:
            headers["Last-Modified"] = format_http_date(self._last_modified)

        if self._data_version is not None:
            headers["X-Data-Version"] = str(self._data_version)

        if self._vary:
            headers["Vary"] = ", ".join(self._vary)

        return headers


def not_modified_response(etag: str, headers: Optional[dict] = None) -> Response:
    """Build a bodiless 304 response carrying the current validators."""
    response = Response(status_code=304)
    for key, value in (headers or {}).items():
        response.headers[key] = value
    response.headers["ETag"] = etag
    return response
