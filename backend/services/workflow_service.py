"""Workflow service: registration, execution dispatch and webhooks.

The one object a host (the HTTP API, a worker, a script) talks to. Holds
the in-memory registry and execution store and wires the engine to the
outbound chat and HTTP capabilities.
"""

import time
from typing import Any, Optional, Union

import structlog

from app.config import Settings, get_settings
from core.exceptions import (
    ChatClientError,
    ExecutionNotFoundError,
    InvalidWorkflowError,
    WebhookNotFoundError,
)
from integrations.claude_client import extract_json
from integrations.http_client import HttpClient
from integrations.webhook_auth import build_headers
from tasks.registry import TaskRegistry, get_task_registry
from workflow.engine import WorkflowEngine
from workflow.models import Webhook, WorkflowDefinition, WorkflowExecution
from workflow.registry import WorkflowRegistry
from workflow.store import ExecutionStore

logger = structlog.get_logger(__name__)

GENERATOR_SYSTEM_PROMPT = """You design automation workflows. Turn the user's description into one workflow definition.
Reply with JSON only, shaped like:
{
  "id": "unique_id",
  "name": "workflow name",
  "description": "what it does",
  "steps": [
    {"id": "step1", "name": "Step Name", "type": "agent|http|transform|condition|wait", "config": {}, "dependsOn": ["previous_step_id"]}
  ],
  "variables": {}
}
Step types and their config:
- agent: {prompt, systemPrompt, outputVariable}
- http: {url, method, body, outputVariable}
- transform: {transformType: json-parse|json-stringify|extract|merge|template, input, path, sources, template, outputVariable}
- condition: {variable, operator: equals|notEquals|contains|greaterThan|lessThan|exists|truthy, value, outputVariable}
- wait: {duration} in milliseconds
Use {{variableName}} to reference workflow variables in strings."""


class WorkflowService:
    """Facade over the workflow registry, execution store and engine."""

    def __init__(
        self,
        chat_client=None,
        http_client: Optional[HttpClient] = None,
        task_registry: Optional[TaskRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = WorkflowRegistry()
        self.store = ExecutionStore(list_limit=self.settings.EXECUTION_LIST_LIMIT)
        self.chat_client = chat_client
        self.http_client = http_client or HttpClient(timeout=self.settings.HTTP_TIMEOUT)
        self.task_registry = task_registry or get_task_registry()
        self.engine = WorkflowEngine(
            registry=self.registry,
            store=self.store,
            task_registry=self.task_registry,
            chat_client=self.chat_client,
            http_client=self.http_client,
            settings=self.settings,
        )

    # ─── Workflows ───

    def register_workflow(self, definition: Union[WorkflowDefinition, dict]) -> WorkflowDefinition:
        """Register (or overwrite) a workflow definition."""
        if isinstance(definition, dict):
            definition = WorkflowDefinition.from_dict(definition)
        self.registry.register_workflow(definition)
        return definition

    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        return self.registry.get_workflow(workflow_id)

    def list_workflows(self) -> list[WorkflowDefinition]:
        return self.registry.list_workflows()

    async def execute_workflow(
        self,
        workflow_id: str,
        input_data: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> WorkflowExecution:
        """Run a workflow and return its finished execution record.

        Raises:
            WorkflowNotFoundError: if the workflow is not registered
        """
        return await self.engine.execute(workflow_id, input_data, timeout=timeout)

    def cancel_execution(self, execution_id: str) -> bool:
        """Request cancellation of a running execution.

        Returns:
            False if the execution exists but is no longer running.

        Raises:
            ExecutionNotFoundError: if the id is unknown
        """
        if self.store.get(execution_id) is None:
            raise ExecutionNotFoundError(execution_id)
        return self.engine.cancel_execution(execution_id)

    # ─── Executions ───

    def get_execution(self, execution_id: str) -> Optional[WorkflowExecution]:
        return self.store.get(execution_id)

    def list_executions(self, workflow_id: Optional[str] = None) -> list[WorkflowExecution]:
        return self.store.list(workflow_id)

    # ─── Webhooks ───

    def register_webhook(self, name: str, webhook: Union[Webhook, dict]) -> Webhook:
        if isinstance(webhook, dict):
            webhook = Webhook.from_dict(webhook)
        self.registry.register_webhook(name, webhook)
        return webhook

    def list_webhooks(self) -> dict[str, Webhook]:
        return self.registry.list_webhooks()

    async def call_n8n_webhook(self, name: str, data: Optional[dict] = None) -> Any:
        """Invoke a registered webhook directly with ``data`` as the JSON body.

        Raises:
            WebhookNotFoundError: if no webhook is registered under ``name``
        """
        webhook = self.registry.get_webhook(name)
        if webhook is None:
            raise WebhookNotFoundError(name)

        logger.info("Calling webhook", webhook=name, url=webhook.url, method=webhook.method)
        response = await self.http_client.request(
            webhook.url,
            method=webhook.method,
            headers=build_headers(webhook),
            body=data if data is not None else {},
        )
        return response.data

    # ─── Generation ───

    async def generate_workflow(self, description: str) -> WorkflowDefinition:
        """Ask the chat model to draft a workflow from a description.

        The draft is returned, not registered. Unparseable replies produce an
        empty placeholder workflow carrying the description.
        """
        if self.chat_client is None:
            raise ChatClientError("No chat client configured")

        response = await self.chat_client.chat(
            messages=[
                {"role": "system", "content": GENERATOR_SYSTEM_PROMPT},
                {"role": "user", "content": f"Create a workflow for: {description}"},
            ],
            max_tokens=2000,
            temperature=0.3,
        )

        try:
            return WorkflowDefinition.from_dict(extract_json(response.content))
        except (ValueError, InvalidWorkflowError) as e:
            logger.warning("Generated workflow could not be parsed", error=str(e))
            return WorkflowDefinition(
                id=f"wf_{int(time.time() * 1000)}",
                name="Generated Workflow",
                description=description,
                steps=[],
            )

    def list_step_types(self) -> list[dict]:
        return self.task_registry.list_all()
