"""
FastAPI Application Factory.
Creates and configures the FastAPI application with routers, middleware, and DI.

Endpoints:
- WS  {WS_PATH}  realtime chat (default /chat)
- GET /, /health  liveness
- GET /metrics    Prometheus
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from dishka import AsyncContainer
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from agent_chat import __version__
from agent_chat.config.logging_config import setup_logging
from agent_chat.config.settings import Settings, get_settings
from agent_chat.observability import metrics
from agent_chat.presentation.api import metrics_router
from agent_chat.presentation.ws import create_chat_router
from agent_chat.setup.ioc.container import create_container

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: container already built in create_fastapi_app.
    Shutdown: close the DI container.
    """
    logger.info("Application started. DI container initialized.")
    yield
    await app.state.dishka_container.close()
    logger.info("Application shutdown. DI container closed.")


def create_fastapi_app(
    container: Optional[AsyncContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        container: prebuilt DI container (tests inject fakes through it)
        settings: overrides the environment

    Returns:
        FastAPI application instance
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_path, settings.log_format)

    if container is None:
        container = create_container(settings=settings)

    app = FastAPI(
        title="Agent Chat",
        description="Streaming chat service for Bedrock Agents",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.dishka_container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        metrics.increment_error(type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    # Health check routes
    @app.get("/", tags=["health"])
    async def root():
        return {"message": "Agent chat server is running."}

    @app.get("/health", tags=["health"])
    async def health():
        return {"status": "healthy"}

    app.include_router(metrics_router)
    app.include_router(create_chat_router(settings.ws_path))

    logger.info("WebSocket chat endpoint mounted at %s", settings.ws_path)
    return app
