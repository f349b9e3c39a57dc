"""
Runtime bootstrap.

Installs the process-wide RuntimeContext, then checks settings.yaml under
its system root. A broken configuration uninstalls the context again so a
corrected bootstrap can follow.
"""

from datetime import datetime, timezone

from chatblocks.dispatch.dispatcher import RequestDispatcher
from chatblocks.llm.block_executor import BlockExecutor
from chatblocks.llm.transport import ChatTransport
from chatblocks.logger import UnifiedLogger, refresh_logfire_configuration
from chatblocks.parameters.bootstrap import ensure_builtin_parameters_registered
from chatblocks.settings import validate_settings
from chatblocks.settings.store import refresh_settings_cache
from .config import RuntimeConfig, RuntimeConfigError
from .context import RuntimeContext
from .state import clear_runtime_context, next_boot_id, set_runtime_context


logger = UnifiedLogger(tag="runtime-bootstrap")


def _check_settings() -> None:
    """
    Raises:
        RuntimeConfigError: If settings.yaml has error-severity issues
    """
    status = validate_settings()
    for issue in status.warnings:
        logger.warning(issue.message, metadata={"issue": issue.name})

    if not status.is_healthy:
        problems = [f"{issue.name}: {issue.message}" for issue in status.errors]
        logger.error("settings.yaml has errors; refusing to run blocks", metadata={"errors": problems})
        raise RuntimeConfigError("; ".join(problems))


async def bootstrap_runtime(config: RuntimeConfig) -> RuntimeContext:
    """Build and install the runtime for config's data and system roots.

    Raises:
        RuntimeConfigError: If settings.yaml has error-severity issues
        RuntimeStateError: If a runtime is already active
    """
    transport = ChatTransport()
    dispatcher = RequestDispatcher(transport, vault_root=config.data_root)
    runtime = RuntimeContext(
        config=config,
        transport=transport,
        dispatcher=dispatcher,
        executor=BlockExecutor(dispatcher, config.data_root),
        logger=logger,
        boot_id=next_boot_id(),
        started_at=datetime.now(timezone.utc),
    )

    # Settings resolve against the installed runtime's system root
    set_runtime_context(runtime)
    try:
        refresh_settings_cache()
        refresh_logfire_configuration(force=True)
        _check_settings()
        ensure_builtin_parameters_registered()
    except Exception:
        clear_runtime_context()
        raise

    logger.activity(
        "Runtime started",
        metadata={
            "boot_id": runtime.boot_id,
            "data_root": str(config.data_root),
            "system_root": str(config.system_root),
            "features": config.features,
        },
    )
    return runtime
