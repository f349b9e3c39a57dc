"""
ChatBlocks HTTP service.

    uvicorn main:app --host 0.0.0.0 --port 8000 --reload

Roots come from CHATBLOCKS_DATA_ROOT and CHATBLOCKS_SYSTEM_ROOT.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from chatblocks.logger import UnifiedLogger
from chatblocks.runtime.bootstrap import bootstrap_runtime
from chatblocks.runtime.config import RuntimeConfig
from api.endpoints import register_exception_handlers, router as api_router


logger = UnifiedLogger(tag="main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.runtime = await bootstrap_runtime(RuntimeConfig.from_environment())
    logger.info("Serving chat blocks", data_root=str(app.state.runtime.config.data_root))
    try:
        yield
    finally:
        # Pending blocks get their responses spliced before the process exits
        runtime, app.state.runtime = app.state.runtime, None
        if runtime is not None:
            await runtime.shutdown()
            logger.info("Runtime shut down", boot_id=runtime.boot_id)


app = FastAPI(title="ChatBlocks", lifespan=lifespan)
app.include_router(api_router)
register_exception_handlers(app)
logger.setup_instrumentation(app)
