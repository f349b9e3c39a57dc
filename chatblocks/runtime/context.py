"""
Runtime context for ChatBlocks.

Provides centralized access to the services a running instance shares
(transport, dispatcher, block executor) and manages their lifecycle.
"""

from dataclasses import dataclass
from datetime import datetime

from chatblocks.dispatch.dispatcher import RequestDispatcher
from chatblocks.llm.backends import get_backend_registry
from chatblocks.llm.block_executor import BlockExecutor
from chatblocks.llm.transport import ChatTransport
from chatblocks.logger import UnifiedLogger
from .config import RuntimeConfig


@dataclass
class RuntimeContext:
    """
    Central runtime context for ChatBlocks services.

    Attributes:
        config: Runtime configuration
        transport: Backend transport owning in-flight requests
        dispatcher: Request dispatcher splicing responses into documents
        executor: Block executor used by the API
        logger: Unified logger for runtime operations
        boot_id: Sequence number of this bootstrap within the process
        started_at: Bootstrap time
    """

    config: RuntimeConfig
    transport: ChatTransport
    dispatcher: RequestDispatcher
    executor: BlockExecutor
    logger: UnifiedLogger
    boot_id: int
    started_at: datetime

    async def shutdown(self):
        """Wait for in-flight requests, then clear the global context."""
        self.logger.info("Shutting down runtime context", pending_requests=self.transport.pending)
        await self.transport.drain()
        runtime_state.clear_runtime_context()

    def get_runtime_summary(self) -> dict:
        """
        Get runtime context summary for diagnostics.

        Returns basic information about the runtime state without
        exposing internal objects.
        """
        backends = self.executor.backends or get_backend_registry()
        return {
            "data_root": str(self.config.data_root),
            "system_root": str(self.config.system_root),
            "boot_id": self.boot_id,
            "started_at": self.started_at.isoformat(timespec="seconds"),
            "pending_requests": self.transport.pending,
            "features": self.config.features,
            "log_level": self.config.log_level,
            "backends": [backends.get(name).describe() for name in backends.names()],
        }


from . import state as runtime_state
