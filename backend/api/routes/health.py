"""Health check endpoints.

Provides:
- Basic liveness probe (/health)
- Detailed engine status (/health/status)
"""

import platform
import sys
import time
from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Depends

from app.config import get_settings
from app.dependencies import get_workflow_service
from services.workflow_service import WorkflowService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_start_time = time.monotonic()
_start_datetime = datetime.now(timezone.utc).isoformat()


@router.get("", response_model=dict[str, Any])
async def root() -> dict[str, Any]:
    """
    Get API name and version.
    Used as a simple liveness probe.
    """
    settings = get_settings()
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "ok",
    }


@router.get("/status", response_model=dict[str, Any])
async def system_status(
    service: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Uptime, runtime info and in-memory engine counters."""
    settings = get_settings()
    chat = service.chat_client
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "started_at": _start_datetime,
        "uptime_seconds": round(time.monotonic() - _start_time, 1),
        "python": sys.version.split()[0],
        "platform": platform.platform(),
        "engine": {
            "workflows": len(service.list_workflows()),
            "webhooks": len(service.list_webhooks()),
            "executions": len(service.store),
            "running": service.engine.get_running_executions(),
            "step_types": service.task_registry.available_types,
        },
        "chat_client": {
            "configured": bool(chat is not None and getattr(chat, "is_configured", True)),
            "model": settings.CLAUDE_MODEL,
        },
    }
