"""
Service layer behind the API endpoints.

Endpoints stay thin: they resolve the runtime context and delegate here.
"""

from chatblocks.document.tokens import is_pending_token
from chatblocks.llm.backends import get_backend_registry
from chatblocks.llm.presets import get_preset_registry
from chatblocks.parameters.bootstrap import ensure_builtin_parameters_registered
from chatblocks.runtime.context import RuntimeContext
from chatblocks.settings import validate_settings
from chatblocks.tools.registry import get_tool_registry

from .exceptions import SystemConfigurationError
from .models import (
    BlockInfo,
    BlockListResponse,
    ConfigurationIssueInfo,
    ConfigurationStatusInfo,
    ExecuteBlockResponse,
    SessionHistoryResponse,
    StatusResponse,
    SystemInfo,
)
from .utils import logger


def get_system_status(runtime: RuntimeContext) -> StatusResponse:
    """
    Collect system status: configured registries and settings health.

    Raises:
        SystemConfigurationError: If settings.yaml cannot be read
    """
    try:
        snapshot = validate_settings()
        configuration_status = ConfigurationStatusInfo(
            issues=[
                ConfigurationIssueInfo(
                    name=issue.name,
                    message=issue.message,
                    severity=issue.severity,
                )
                for issue in snapshot.issues
            ],
            tool_availability=dict(snapshot.tool_availability),
            backend_availability=dict(snapshot.backend_availability),
        )

        return StatusResponse(
            system=SystemInfo(
                startup_time=runtime.started_at,
                data_root=str(runtime.config.data_root),
                pending_requests=runtime.transport.pending,
            ),
            backends=get_backend_registry().names(),
            tools=get_tool_registry().names(),
            presets=get_preset_registry().names(),
            parameters=ensure_builtin_parameters_registered().get_registered_parameters(),
            configuration_status=configuration_status,
        )
    except (OSError, ValueError) as e:
        logger.error("Failed to collect system status", error=str(e))
        raise SystemConfigurationError(str(e))


def list_document_blocks(runtime: RuntimeContext, path: str) -> BlockListResponse:
    document = runtime.executor.load(path)
    return BlockListResponse(
        path=path,
        blocks=[
            BlockInfo(
                start=block.start,
                end=block.end,
                name=block.name,
                parameters=dict(block.parameters),
                body=block.body,
                result=block.result,
                pending=is_pending_token(block.result),
            )
            for block in document.blocks
        ],
    )


async def execute_document_block(runtime: RuntimeContext, path: str, position=None, name=None) -> ExecuteBlockResponse:
    outcome = await runtime.executor.execute(path, position=position, name=name)
    return ExecuteBlockResponse(
        path=outcome.path,
        block_start=outcome.block_start,
        result=outcome.result,
        token=outcome.token,
        dry_run=outcome.dry_run,
    )


def preview_session_history(runtime: RuntimeContext, path: str, session: str, position: int) -> SessionHistoryResponse:
    return SessionHistoryResponse(
        session=session,
        messages=runtime.executor.preview_history(path, session, position),
    )
