"""
API endpoint implementations for ChatBlocks.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from chatblocks.errors import ChatBlocksError
from chatblocks.runtime.context import RuntimeContext
from chatblocks.runtime.state import get_runtime_context, RuntimeStateError

from .exceptions import APIException, RuntimeUnavailableError
from .models import (
    BlockListResponse,
    ExecuteBlockRequest,
    ExecuteBlockResponse,
    SessionHistoryRequest,
    SessionHistoryResponse,
    StatusResponse,
)
from .services import (
    execute_document_block,
    get_system_status,
    list_document_blocks,
    preview_session_history,
)
from .utils import create_error_response

# Create API router
router = APIRouter(prefix="/api", tags=["ChatBlocks API"])


def _runtime() -> RuntimeContext:
    try:
        return get_runtime_context()
    except RuntimeStateError:
        raise RuntimeUnavailableError()


#######################################################################
## Health & Status Endpoints
#######################################################################

@router.get("/health")
async def health_check():
    """
    Lightweight health check endpoint for Docker healthcheck and monitoring.

    Use /api/status for configuration details.
    """
    try:
        runtime = get_runtime_context()
        return JSONResponse(
            status_code=200,
            content={
                "status": "healthy",
                "pending_requests": runtime.transport.pending,
            }
        )
    except RuntimeStateError:
        # Runtime not initialized yet - still starting up
        return JSONResponse(
            status_code=503,
            content={"status": "starting", "pending_requests": 0}
        )


@router.get("/status", response_model=StatusResponse)
async def get_status():
    """
    Get configured backends, tools, presets and settings health.
    """
    return get_system_status(_runtime())


#######################################################################
## Chat Block Endpoints
#######################################################################

@router.get("/blocks", response_model=BlockListResponse)
async def list_blocks(path: str = Query(..., description="Document path relative to the data root")):
    """List the chat blocks of a document."""
    return list_document_blocks(_runtime(), path)


@router.post("/blocks/execute", response_model=ExecuteBlockResponse)
async def execute_block(request: ExecuteBlockRequest):
    """
    Run one chat block.

    Live runs return the pending-response token immediately; the response is
    written into the document when the backend answers. Dry runs return the
    rendered request payload.
    """
    return await execute_document_block(
        _runtime(),
        request.path,
        position=request.position,
        name=request.name,
    )


@router.post("/sessions/history", response_model=SessionHistoryResponse)
async def session_history(request: SessionHistoryRequest):
    """Preview the history a block at the given position would receive."""
    return preview_session_history(_runtime(), request.path, request.session, request.position)


#######################################################################
## Exception Handlers
#######################################################################

def register_exception_handlers(app):
    """Register exception handlers with the FastAPI app."""

    @app.exception_handler(APIException)
    async def api_exception_handler(request, exc: APIException):
        """Handle API-specific exceptions with proper error responses."""
        return create_error_response(exc)

    @app.exception_handler(ChatBlocksError)
    async def chatblocks_exception_handler(request, exc: ChatBlocksError):
        """Map domain errors (unknown block, backend, tool...) to JSON errors."""
        return create_error_response(exc)

    @app.exception_handler(Exception)
    async def general_exception_handler(request, exc: Exception):
        """Handle unexpected exceptions with generic error responses."""
        return create_error_response(exc)
