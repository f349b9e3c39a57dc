"""
Exception to JSON error body conversion shared by the API handlers.
"""

import traceback

from fastapi.responses import JSONResponse

from chatblocks.errors import ChatBlocksError
from chatblocks.logger import UnifiedLogger
from chatblocks.settings.store import get_general_setting_value

from .exceptions import APIException, from_chatblocks_error
from .models import ErrorResponse


logger = UnifiedLogger(tag="api")


def _internal_error(exception: Exception) -> ErrorResponse:
    # Tracebacks only leave the process with the `debug` setting on
    if not get_general_setting_value("debug", False):
        return ErrorResponse(error="InternalServerError", message="An unexpected error occurred")
    return ErrorResponse(
        error="InternalServerError",
        message=str(exception),
        details={"error_type": type(exception).__name__, "traceback": traceback.format_exc()},
    )


def create_error_response(exception: Exception) -> JSONResponse:
    """ErrorResponse body with the status code the exception maps to.

    ChatBlocksError subclasses are mapped through from_chatblocks_error();
    anything else is logged and reported as a 500.
    """
    if isinstance(exception, ChatBlocksError):
        exception = from_chatblocks_error(exception)

    if isinstance(exception, APIException):
        body = ErrorResponse(error=exception.error_type, message=exception.detail, details=exception.details)
        return JSONResponse(status_code=exception.status_code, content=body.model_dump())

    logger.error("Unhandled API error", error=str(exception), error_type=type(exception).__name__)
    return JSONResponse(status_code=500, content=_internal_error(exception).model_dump())
