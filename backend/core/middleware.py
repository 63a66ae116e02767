"""FastAPI middleware for request tracking and error mapping.

Adds:
- X-Request-ID header (generated if not provided), also bound into the
  structlog context so engine logs for a synchronous execute call carry it
- X-Process-Time header (request duration)
- Exception handlers turning orchestrator errors into JSON responses
"""

import time
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from core.exceptions import OrchestratorException

logger = structlog.get_logger(__name__)

QUIET_PATHS = ("/api/health",)


class RequestTrackingMiddleware(BaseHTTPMiddleware):
    """Request ID, timing and one access log line per request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        request.state.request_id = request_id
        start_time = time.monotonic()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "Unhandled exception",
                    method=request.method,
                    path=request.url.path,
                    duration_ms=_elapsed_ms(start_time),
                    error=str(exc),
                    exc_info=True,
                )
                detail = "Internal server error"
                if not get_settings().is_production:
                    detail = str(exc) or detail
                return JSONResponse(
                    status_code=500,
                    content={"detail": detail, "request_id": request_id},
                    headers={"X-Request-ID": request_id},
                )

            duration_ms = _elapsed_ms(start_time)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

            if not request.url.path.startswith(QUIET_PATHS):
                log = logger.warning if response.status_code >= 400 else logger.info
                log(
                    "Request handled",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=duration_ms,
                )

        return response


def _elapsed_ms(start: float) -> float:
    return round((time.monotonic() - start) * 1000, 2)


def _error_body(request: Request, detail: str) -> dict:
    return {"detail": detail, "request_id": getattr(request.state, "request_id", None)}


def setup_exception_handlers(app: FastAPI) -> None:
    """Register global exception handlers.

    NotFoundError maps to 404 and ValidationError to 422 through their
    ``status_code``; bare ValueErrors from request parsing become 400.
    """

    @app.exception_handler(OrchestratorException)
    async def orchestrator_error_handler(request: Request, exc: OrchestratorException):
        if exc.status_code >= 500:
            logger.error("Request failed", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return JSONResponse(status_code=400, content=_error_body(request, str(exc)))
