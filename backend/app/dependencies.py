"""FastAPI dependency injection functions."""

from typing import Optional

from integrations.claude_client import ClaudeClient
from services.workflow_service import WorkflowService

_service: Optional[WorkflowService] = None


def get_workflow_service() -> WorkflowService:
    """Get or create the process-wide workflow service.

    Registry and execution store are in memory, so every request must see
    the same instance.
    """
    global _service
    if _service is None:
        _service = WorkflowService(chat_client=ClaudeClient())
    return _service


def reset_workflow_service() -> None:
    """Drop the singleton (used by tests and on shutdown)."""
    global _service
    _service = None
