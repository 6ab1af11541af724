"""
API Key Authentication

Bearer API-key check for the resource server. The key is compared in
constant time; a server without a configured key rejects everything
unless auth is explicitly disabled.
"""

import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from dulce.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# HTTP Bearer token extraction
security = HTTPBearer(auto_error=False)


def extract_bearer(header: Optional[str]) -> Optional[str]:
    """Return the token from an `Authorization: Bearer <token>` header."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


def validate_bearer(header: Optional[str], expected_key: Optional[str]) -> bool:
    """
    Check an Authorization header against the expected API key.

    Returns False for missing/malformed headers and when no key is
    configured.
    """
    token = extract_bearer(header)
    if token is None:
        logger.debug("No bearer token in Authorization header")
        return False

    if not expected_key:
        logger.error("API_KEY is not configured; rejecting request")
        return False

    return hmac.compare_digest(token.encode(), expected_key.encode())


async def require_api_key(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    FastAPI dependency enforcing the bearer API key.

    Raises:
        HTTPException 401: If the key is missing or wrong
    """
    if not settings.AUTH_ENABLED:
        return

    header = f"{BEARER_PREFIX}{credentials.credentials}" if credentials else None
    if not validate_bearer(header, settings.API_KEY):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Valid API key required in Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
