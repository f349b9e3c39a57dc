"""
Custom exceptions and error handling for the API module.
"""

from typing import Dict, Optional

from fastapi import HTTPException

from chatblocks.errors import (
    BackendConfigurationError,
    BlockNotFoundError,
    ChatBlocksError,
    DocumentError,
    RegistryLookupError,
)


class APIException(HTTPException):
    """Base exception for API-related errors."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        message: str,
        details: Optional[Dict] = None
    ):
        self.error_type = error_type
        self.details = details
        super().__init__(status_code=status_code, detail=message)


class SystemConfigurationError(APIException):
    """Raised when there are system configuration issues."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            status_code=500,
            error_type="SystemConfiguration",
            message=f"System configuration error: {message}",
            details=details
        )


class RuntimeUnavailableError(APIException):
    """Raised when a request arrives before the runtime is bootstrapped."""

    def __init__(self):
        super().__init__(
            status_code=503,
            error_type="RuntimeUnavailable",
            message="Runtime is not initialized yet",
        )


_STATUS_BY_ERROR = (
    (BlockNotFoundError, 404),
    (DocumentError, 400),
    (RegistryLookupError, 422),
    (BackendConfigurationError, 422),
)


def from_chatblocks_error(exc: ChatBlocksError) -> APIException:
    """Map a domain error to an API error with a matching status code."""
    status_code = 500
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status_code = code
            break

    if isinstance(exc, DocumentError) and "not found" in str(exc).lower():
        status_code = 404

    details = None
    if isinstance(exc, RegistryLookupError):
        details = {"name": exc.name, "available": exc.available}

    return APIException(
        status_code=status_code,
        error_type=type(exc).__name__,
        message=str(exc),
        details=details,
    )
