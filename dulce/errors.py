"""
Error Taxonomy

Structured errors for resource reads and tools. The cache layer never
raises these: it only answers "entry" or "absent". Errors originate in
validation or in the fetch/projection step of a provider or tool and
travel to the caller as structured payloads.
"""

import enum
import logging
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dulce.utils.config import get_settings


logger = logging.getLogger(__name__)


class ErrorCode(enum.Enum):
    """Error codes for structured error responses."""
    VALIDATION = "VALIDATION"      # Malformed or out-of-range input
    NOT_FOUND = "NOT_FOUND"        # Referenced entity absent
    INTERNAL = "INTERNAL"          # Unexpected fetch/compute failure
    UNAUTHORIZED = "UNAUTHORIZED"  # Credential check failed


HTTP_STATUS_BY_CODE = {
    ErrorCode.VALIDATION: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INTERNAL: 500,
}


class DulceError(Exception):
    """Base error carrying an error code and optional details."""

    code: ErrorCode = ErrorCode.INTERNAL

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_CODE[self.code]


class ValidationError(DulceError):
    code = ErrorCode.VALIDATION


class NotFoundError(DulceError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f'{entity.capitalize()} with ID "{entity_id}" not found',
            details={"entity": entity, "id": entity_id},
        )


class InternalError(DulceError):
    code = ErrorCode.INTERNAL


def create_error_response(
    code: ErrorCode,
    message: str,
    error: Optional[BaseException] = None,
    path: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a standardized error payload and log it server-side.

    Args:
        code: Error code
        message: Human-readable message
        error: Original exception (optional)
        path: Resource URI or request path (optional)

    Returns:
        {"error": {"code", "message", ...}, "timestamp", "path"?}
    """
    body: Dict[str, Any] = {"code": code.value, "message": message}

    if error is not None:
        details: Dict[str, Any] = {"name": type(error).__name__}
        if isinstance(error, DulceError) and error.details:
            details.update(error.details)
        if error.__cause__ is not None:
            details["cause"] = str(error.__cause__)
        body["details"] = details

        # Stack traces only leave the process outside production
        if not get_settings().is_production:
            body["stack"] = "".join(
                traceback.format_exception(type(error), error, error.__traceback__)
            )

    response: Dict[str, Any] = {
        "error": body,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if path:
        response["path"] = path

    logger.error(
        f"Error response: code={code.value} message={message}"
        + (f" ({type(error).__name__}: {error})" if error is not None else "")
    )
    return response


def error_response_from(exc: DulceError, path: Optional[str] = None) -> Dict[str, Any]:
    """Build an error payload from a DulceError."""
    return create_error_response(exc.code, exc.message, exc, path)
