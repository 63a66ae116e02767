"""In-memory execution store.

Executions are kept for the life of the process; eviction is left to the
host. Records are the live objects the engine mutates, so a caller polling
``get`` sees step results appear as the run progresses.
"""

import threading
from typing import Optional

from workflow.models import WorkflowExecution

DEFAULT_LIST_LIMIT = 100


class ExecutionStore:
    """Execution id → execution record, guarded by a lock."""

    def __init__(self, list_limit: int = DEFAULT_LIST_LIMIT):
        self._lock = threading.RLock()
        self._executions: dict[str, WorkflowExecution] = {}
        self._list_limit = list_limit

    def save(self, execution: WorkflowExecution) -> None:
        with self._lock:
            self._executions[execution.id] = execution

    def get(self, execution_id: str) -> Optional[WorkflowExecution]:
        with self._lock:
            return self._executions.get(execution_id)

    def list(self, workflow_id: Optional[str] = None) -> list[WorkflowExecution]:
        """Most recent executions first, capped at ``list_limit``.

        Args:
            workflow_id: Only return executions of this workflow.
        """
        with self._lock:
            executions = list(self._executions.values())

        if workflow_id is not None:
            executions = [e for e in executions if e.workflow_id == workflow_id]

        executions.sort(key=lambda e: e.started_at, reverse=True)
        return executions[: self._list_limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._executions)
