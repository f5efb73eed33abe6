"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from localchat.api.v1.chat_router import router as chat_router
from localchat.api.v1.preference_router import router as preference_router
from localchat.api.v1.session_router import router as session_router
from localchat.core.config import settings
from localchat.core.exceptions import (
    AppException,
    app_exception_handler,
    validation_exception_handler,
)
from localchat.core.redis import close_redis, create_redis
from localchat.dependencies import build_runtime
from localchat.schemas.response_schema import ApiResponse, success_response
from localchat.services.completion_client import CompletionClient

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info(
        "Starting application",
        app_name=settings.app.name,
        environment=settings.app.env,
        model_server=settings.llm.base_url,
    )
    redis_client = await create_redis(settings.redis)
    completion_client = CompletionClient.from_config(settings.llm)
    app.state.runtime = build_runtime(
        redis_client,
        completion_client,
        title_max_length=settings.llm.title_max_length,
    )
    yield
    await app.state.runtime.manager.shutdown()
    await completion_client.aclose()
    await close_redis(redis_client)
    logger.info("Shutting down application")


def create_app() -> FastAPI:
    """Build the application with handlers, middleware and routers."""
    application = FastAPI(
        title=settings.app.name,
        description="Streaming chat sessions for a local model server",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app.debug,
    )

    application.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    application.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.get("/health", response_model=ApiResponse[dict])
    async def health_check() -> dict:
        """Health check endpoint."""
        return success_response({"status": "healthy"})

    application.include_router(chat_router)
    application.include_router(session_router)
    application.include_router(preference_router)
    return application


app = create_app()


def run() -> None:
    """Serve the application with uvicorn."""
    uvicorn.run(
        "localchat.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.app.is_development,
    )
