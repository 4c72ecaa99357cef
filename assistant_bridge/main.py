from __future__ import annotations
import asyncio
import contextlib
from contextlib import asynccontextmanager
import uvicorn
from fastapi import FastAPI
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from . import __version__
from .config import (
    ASSISTANT_ID,
    VECTOR_STORE_ID,
    LOG_LEVEL,
    LOG_STRUCTURED,
    HTTP_HOST,
    HTTP_PORT,
    load_assistant_profile,
    require_settings,
)
from .obs.otel import setup_tracing, shutdown_tracing
from .obs.logging_setup import setup_logging, get_logger
from .services.assistant_client import AssistantClient, create_openai_http_client
from .services.provisioning import AssistantProvisioner, resolve_identifiers
from .services.session_router import SessionRouter
from .transport.telegram import TelegramTransport
from .routers import health, readiness, metrics

logger = get_logger(__name__)

def _log_router_exit(task: asyncio.Task) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.error("Session router crashed", error=str(task.exception()))

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Provision the assistant, then poll Telegram until shutdown."""

    setup_logging(level=LOG_LEVEL, structured=LOG_STRUCTURED)
    setup_tracing()
    require_settings()

    openai_client = create_openai_http_client()
    chat = TelegramTransport()

    try:
        bot = await chat.get_me()
        logger.info("Telegram bot authorized", username=bot.get("username"))

        identifiers = await resolve_identifiers(
            AssistantProvisioner(openai_client),
            load_assistant_profile,
            assistant_id=ASSISTANT_ID,
            vector_store_id=VECTOR_STORE_ID
        )
        logger.info("Assistant ready", assistant_id=identifiers.assistant_id)

        session_router = SessionRouter(AssistantClient(openai_client, identifiers), chat)
        app.state.identifiers = identifiers
        app.state.session_router = session_router

        router_task = asyncio.create_task(session_router.run(chat.updates()), name="session-router")
        router_task.add_done_callback(_log_router_exit)

        yield

        router_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await router_task
        await session_router.aclose()
    finally:
        await chat.aclose()
        await openai_client.aclose()
        shutdown_tracing()
        logger.info("Shutdown complete")

app = FastAPI(
    title="Assistant Bridge",
    version=__version__,
    description="Telegram bridge to an OpenAI assistant with file search",
    lifespan=lifespan
)

FastAPIInstrumentor.instrument_app(
    app,
    excluded_urls="/health,/ready,/live,/metrics,/metrics/prometheus"
)

app.include_router(health.router)
app.include_router(readiness.router)
app.include_router(metrics.router)

def run() -> None:
    """Console entry point."""
    uvicorn.run(app, host=HTTP_HOST, port=HTTP_PORT, log_config=None)

if __name__ == "__main__":
    run()
