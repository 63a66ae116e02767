"""In-memory registry of workflow definitions and named webhooks.

Shared by every in-flight execution and by the API layer, so all access
goes through a lock. No persistence: the registry lives as long as the
process.
"""

import copy
import threading
from typing import Optional

import structlog

from workflow.models import Webhook, WorkflowDefinition

logger = structlog.get_logger(__name__)


class WorkflowRegistry:
    """Id-keyed workflow definitions and name-keyed webhooks."""

    def __init__(self):
        self._lock = threading.RLock()
        self._workflows: dict[str, WorkflowDefinition] = {}
        self._webhooks: dict[str, Webhook] = {}

    # ─── Workflows ───

    def register_workflow(self, definition: WorkflowDefinition) -> None:
        """Store a definition. Re-registering an id overwrites it."""
        stored = copy.deepcopy(definition)
        with self._lock:
            replaced = stored.id in self._workflows
            self._workflows[stored.id] = stored

        if replaced:
            logger.warning("Workflow re-registered, previous definition replaced", workflow_id=stored.id)
        logger.info(
            "Registered workflow",
            workflow_id=stored.id,
            name=stored.name,
            steps=len(stored.steps),
        )

    def get_workflow(self, workflow_id: str) -> Optional[WorkflowDefinition]:
        """A copy of the stored definition; callers may mutate it freely."""
        with self._lock:
            return copy.deepcopy(self._workflows.get(workflow_id))

    def list_workflows(self) -> list[WorkflowDefinition]:
        """All definitions, in registration order."""
        with self._lock:
            return copy.deepcopy(list(self._workflows.values()))

    # ─── Webhooks ───

    def register_webhook(self, name: str, webhook: Webhook) -> None:
        with self._lock:
            self._webhooks[name] = copy.deepcopy(webhook)
        logger.info("Registered webhook", name=name, url=webhook.url)

    def get_webhook(self, name: str) -> Optional[Webhook]:
        with self._lock:
            return copy.deepcopy(self._webhooks.get(name))

    def list_webhooks(self) -> dict[str, Webhook]:
        with self._lock:
            return copy.deepcopy(self._webhooks)
