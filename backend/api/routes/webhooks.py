"""Webhook endpoints: register, list and call named outbound webhooks."""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, status

from api.schemas.webhook import WebhookCallRequest, WebhookCreate, WebhookResponse
from app.dependencies import get_workflow_service
from services.workflow_service import WorkflowService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.get("", response_model=list[WebhookResponse])
async def list_webhooks(
    service: WorkflowService = Depends(get_workflow_service),
) -> list[dict[str, Any]]:
    return [{"name": name, **wh.to_dict()} for name, wh in service.list_webhooks().items()]


@router.post("/{name}", status_code=status.HTTP_201_CREATED, response_model=WebhookResponse)
async def register_webhook(
    name: str,
    request: WebhookCreate,
    service: WorkflowService = Depends(get_workflow_service),
) -> dict[str, Any]:
    """Register (or replace) a webhook. Credentials are never echoed back."""
    webhook = service.register_webhook(name, request.model_dump(exclude_unset=True))
    return {"name": name, **webhook.to_dict()}


@router.post("/{name}/call")
async def call_webhook(
    name: str,
    request: WebhookCallRequest | None = None,
    service: WorkflowService = Depends(get_workflow_service),
) -> Any:
    """Call a registered webhook and return its parsed response body."""
    data = request.data if request is not None else {}
    return await service.call_n8n_webhook(name, data)
