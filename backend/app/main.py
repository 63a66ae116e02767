"""Workflow Orchestrator - FastAPI Application."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.dependencies import get_workflow_service
from api.routes import health
from api.v1.router import api_v1_router
from core.logging_config import setup_logging
from core.middleware import RequestTrackingMiddleware, setup_exception_handlers

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    settings = get_settings()
    setup_logging()

    service = get_workflow_service()
    if service.chat_client is not None and service.chat_client.is_configured:
        logger.info("Chat client configured", model=settings.CLAUDE_MODEL)
    else:
        logger.warning("Chat client not configured, agent steps will fail (set ANTHROPIC_API_KEY)")

    logger.info(
        "Application started",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        step_types=service.task_registry.available_types,
    )
    yield

    if service.chat_client is not None and service.chat_client.is_connected:
        await service.chat_client.disconnect()
    logger.info("Application shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="DAG workflow execution engine with agent, HTTP, transform, "
                    "condition and wait steps.",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.add_middleware(RequestTrackingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    setup_exception_handlers(app)

    # Unversioned health check for load balancers and probes
    app.include_router(health.router, prefix="/api", tags=["Health"])

    app.include_router(api_v1_router, prefix=settings.API_V1_PREFIX)

    return app


app = create_app()
