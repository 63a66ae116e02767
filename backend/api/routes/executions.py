"""Execution endpoints: list, get and cancel."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.schemas.execution import CancelResponse, ExecutionResponse
from app.dependencies import get_workflow_service
from core.exceptions import ExecutionNotFoundError
from services.workflow_service import WorkflowService

router = APIRouter(tags=["executions"])


@router.get("", response_model=list[ExecutionResponse])
async def list_executions(
    workflow_id: Optional[str] = Query(default=None, description="Only executions of this workflow"),
    service: WorkflowService = Depends(get_workflow_service),
) -> list[dict]:
    """Most recent executions first."""
    return [e.to_dict() for e in service.list_executions(workflow_id)]


@router.get("/{execution_id}", response_model=ExecutionResponse)
async def get_execution(
    execution_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> dict:
    execution = service.get_execution(execution_id)
    if execution is None:
        raise ExecutionNotFoundError(execution_id)
    return execution.to_dict()


@router.post("/{execution_id}/cancel", response_model=CancelResponse)
async def cancel_execution(
    execution_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> CancelResponse:
    """Request cancellation; takes effect at the next step boundary or sleep."""
    cancelled = service.cancel_execution(execution_id)
    return CancelResponse(execution_id=execution_id, cancelled=cancelled)
