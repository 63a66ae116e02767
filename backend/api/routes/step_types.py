"""Step type catalogue."""

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_workflow_service
from services.workflow_service import WorkflowService

router = APIRouter(tags=["step-types"])


@router.get("", response_model=list[dict[str, Any]])
async def list_step_types(
    service: WorkflowService = Depends(get_workflow_service),
) -> list[dict[str, Any]]:
    """List registered step types with their config schemas."""
    return service.list_step_types()
