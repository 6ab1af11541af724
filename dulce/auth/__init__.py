"""Bearer API-key authentication."""

from .api_key import extract_bearer, validate_bearer, require_api_key

__all__ = [
    "extract_bearer",
    "validate_bearer",
    "require_api_key",
]
