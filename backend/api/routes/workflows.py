"""Workflow endpoints: register, list, get, execute and generate."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, status

from api.schemas.execution import ExecutionResponse
from api.schemas.workflow import WorkflowCreate, WorkflowExecuteRequest, WorkflowGenerateRequest
from app.dependencies import get_workflow_service
from core.exceptions import WorkflowNotFoundError
from services.workflow_service import WorkflowService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["workflows"])


@router.get("", response_model=list[dict[str, Any]])
async def list_workflows(
    service: WorkflowService = Depends(get_workflow_service),
) -> list[dict[str, Any]]:
    """List registered workflows in registration order."""
    return [wf.to_dict() for wf in service.list_workflows()]


@router.post("", status_code=status.HTTP_201_CREATED, response_model=dict[str, Any])
async def register_workflow(
    request: WorkflowCreate,
    service: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """
    Register a workflow definition. An existing workflow with the same id
    is replaced.
    """
    definition = service.register_workflow(request.model_dump(by_alias=True, exclude_unset=True))
    return definition.to_dict()


@router.post("/generate", response_model=dict[str, Any])
async def generate_workflow(
    request: WorkflowGenerateRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Draft a workflow from a description. The draft is not registered."""
    definition = await service.generate_workflow(request.description)
    return definition.to_dict()


@router.get("/{workflow_id}", response_model=dict[str, Any])
async def get_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    workflow = service.get_workflow(workflow_id)
    if workflow is None:
        raise WorkflowNotFoundError(workflow_id)
    return workflow.to_dict()


@router.post("/{workflow_id}/execute", response_model=ExecutionResponse)
async def execute_workflow(
    workflow_id: str,
    request: WorkflowExecuteRequest | None = None,
    service: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """
    Run a workflow and wait for it to finish.
    Step failures are reported in the execution record, not as HTTP errors.
    """
    request = request or WorkflowExecuteRequest()
    execution = await service.execute_workflow(workflow_id, request.input, timeout=request.timeout)
    return execution.to_dict()
