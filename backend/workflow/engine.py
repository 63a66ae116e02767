"""Workflow Execution Engine: DAG-based workflow runner.

Takes a registered workflow definition (a DAG of steps linked by
``dependsOn``) and runs it once:

- Dependency resolution (topological sort, cycle detection)
- Strictly sequential step execution in resolved order
- Skipping of steps whose dependencies did not complete
- Per-step retry with linear backoff
- Variable passing between steps (``config.outputVariable``)
- Caller cancellation and an optional execution deadline

Workflow Definition Schema:
{
    "id": "order-sync",
    "name": "Order sync",
    "variables": { "region": "eu" },
    "steps": [
        {
            "id": "fetch",
            "type": "http",
            "config": { "url": "https://example.com/orders/{{region}}",
                        "method": "GET", "outputVariable": "orders" },
            "retryConfig": { "maxRetries": 2, "backoffMs": 500 }
        },
        {
            "id": "count",
            "type": "transform",
            "dependsOn": ["fetch"],
            "config": { "transformType": "extract", "input": "orders",
                        "path": "meta.total", "outputVariable": "total" }
        }
    ]
}
"""

import asyncio
import time
from types import MappingProxyType
from typing import Any, Awaitable, Optional

import structlog

from app.config import Settings, get_settings
from core.exceptions import (
    CircularDependencyError,
    ExecutionCancelledError,
    ExecutionTimeoutError,
    OrchestratorException,
    StepExecutionError,
    WorkflowNotFoundError,
)
from core.logging_config import execution_log_context
from tasks.base_task import StepContext
from tasks.registry import TaskRegistry, get_task_registry
from workflow.models import (
    ExecutionStatus,
    StepResult,
    StepStatus,
    WorkflowExecution,
    WorkflowStep,
    new_execution_id,
    utcnow,
)
from workflow.registry import WorkflowRegistry
from workflow.resolver import topological_sort
from workflow.retry_strategies import RetryStrategy, execute_with_retry
from workflow.store import ExecutionStore

logger = structlog.get_logger(__name__)

DEPENDENCIES_NOT_MET = "Dependencies not met"


# ─── Run control ──────────────────────────────────────────────

class RunControl:
    """Cancellation flag plus optional deadline for one execution.

    Every suspension point of the run (handler call, backoff sleep) goes
    through ``guard`` so that either signal interrupts it.
    """

    def __init__(self, execution_id: str, timeout: Optional[float] = None):
        self.execution_id = execution_id
        self.timeout = timeout
        self.deadline = time.monotonic() + timeout if timeout else None
        self._cancelled = asyncio.Event()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def check(self) -> None:
        if self.cancelled:
            raise ExecutionCancelledError(self.execution_id)
        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise ExecutionTimeoutError(self.timeout)

    async def guard(self, awaitable: Awaitable) -> Any:
        """Await ``awaitable`` unless cancellation or the deadline comes first."""
        try:
            self.check()
        except (ExecutionCancelledError, ExecutionTimeoutError):
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise
        task = asyncio.ensure_future(awaitable)
        cancel_waiter = asyncio.ensure_future(self._cancelled.wait())
        remaining = None
        if self.deadline is not None:
            remaining = max(self.deadline - time.monotonic(), 0)

        try:
            done, _ = await asyncio.wait(
                {task, cancel_waiter},
                timeout=remaining,
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except (asyncio.CancelledError, Exception):
            pass  # outcome of an abandoned handler is irrelevant
        self.check()
        raise ExecutionTimeoutError(self.timeout)

    async def sleep(self, seconds: float) -> None:
        await self.guard(asyncio.sleep(seconds))


# ─── Workflow Engine ───────────────────────────────────────────

class WorkflowEngine:
    """Main workflow execution engine.

    Steps run one at a time in topological order; step N's output is
    visible to step N+1. The first failing step without a retry policy
    stops the run and fails the execution with that step's error. A step
    that exhausts its retries does not stop the run: its dependents are
    skipped and the execution can still complete.
    """

    def __init__(
        self,
        registry: WorkflowRegistry,
        store: ExecutionStore,
        task_registry: Optional[TaskRegistry] = None,
        chat_client=None,
        http_client=None,
        settings: Optional[Settings] = None,
    ):
        self._registry = registry
        self._store = store
        self._task_registry = task_registry or get_task_registry()
        self._chat_client = chat_client
        self._http_client = http_client
        self._settings = settings or get_settings()
        self._running: dict[str, RunControl] = {}

    async def execute(
        self,
        workflow_id: str,
        input_data: Optional[dict] = None,
        timeout: Optional[float] = None,
    ) -> WorkflowExecution:
        """Run a registered workflow to completion.

        Args:
            workflow_id: Id of a registered workflow
            input_data: Caller variables, overriding the workflow's defaults
            timeout: Deadline in seconds for the whole run

        Returns:
            The execution record; failures are reported in it, not raised.

        Raises:
            WorkflowNotFoundError: before anything is recorded
        """
        workflow = self._registry.get_workflow(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)

        if timeout is None:
            timeout = self._settings.EXECUTION_TIMEOUT

        execution = WorkflowExecution(
            id=new_execution_id(),
            workflow_id=workflow_id,
            status=ExecutionStatus.RUNNING,
            variables={**workflow.variables, **(input_data or {})},
        )
        control = RunControl(execution.id, timeout)
        self._store.save(execution)
        self._running[execution.id] = control

        with execution_log_context(execution.id, workflow_id):
            await self._run(workflow, execution, control)
        return execution

    async def _run(self, workflow, execution: WorkflowExecution, control: RunControl) -> None:
        logger.info("Starting workflow execution", steps=len(workflow.steps))

        try:
            ordered = topological_sort(workflow.steps)
            await self._run_steps(ordered, execution, control)
        except CircularDependencyError as e:
            execution.status = ExecutionStatus.FAILED
            execution.error = str(e)
            logger.error("Workflow has a dependency cycle", step_id=e.step_id)
        except ExecutionCancelledError as e:
            execution.status = ExecutionStatus.CANCELLED
            execution.error = str(e)
            logger.info("Execution cancelled")
        except ExecutionTimeoutError as e:
            execution.status = ExecutionStatus.FAILED
            execution.error = str(e)
            logger.warning("Execution timed out", timeout=control.timeout)
        except asyncio.CancelledError:
            execution.status = ExecutionStatus.CANCELLED
            execution.error = str(ExecutionCancelledError(execution.id))
            execution.completed_at = utcnow()
            logger.info("Execution task cancelled")
            raise
        except Exception as e:
            execution.status = ExecutionStatus.FAILED
            execution.error = str(e) or "Unknown error"
            logger.error("Execution failed unexpectedly", error=execution.error, exc_info=True)
        finally:
            self._running.pop(execution.id, None)

        execution.completed_at = utcnow()
        logger.info(
            "Workflow execution finished",
            status=execution.status.value,
            error=execution.error,
            duration_ms=int((execution.completed_at - execution.started_at).total_seconds() * 1000),
        )

    async def _run_steps(
        self,
        ordered: list[WorkflowStep],
        execution: WorkflowExecution,
        control: RunControl,
    ) -> None:
        for step in ordered:
            if step.depends_on and not self._dependencies_met(step, execution):
                now = utcnow()
                execution.step_results[step.id] = StepResult(
                    step_id=step.id,
                    status=StepStatus.SKIPPED,
                    error=DEPENDENCIES_NOT_MET,
                    started_at=now,
                    completed_at=now,
                )
                logger.info("Step skipped", step_id=step.id, reason=DEPENDENCIES_NOT_MET)
                continue

            result = await self.execute_step(step, execution, control)

            if result.status == StepStatus.FAILED:
                if step.retry_config is None:
                    execution.status = ExecutionStatus.FAILED
                    execution.error = result.error
                    logger.error("Step failed, stopping execution", step_id=step.id, error=result.error)
                    return
                logger.error("Step failed after exhausting retries", step_id=step.id, error=result.error)

        execution.status = ExecutionStatus.COMPLETED

    @staticmethod
    def _dependencies_met(step: WorkflowStep, execution: WorkflowExecution) -> bool:
        for dep_id in step.depends_on or []:
            dep = execution.step_results.get(dep_id)
            if dep is None or dep.status != StepStatus.COMPLETED:
                return False
        return True

    async def execute_step(
        self,
        step: WorkflowStep,
        execution: WorkflowExecution,
        control: RunControl,
    ) -> StepResult:
        """Run one step through its handler with the step's retry policy.

        The returned result is also stored in ``execution.step_results``.
        Cancellation and deadline errors propagate to the caller after the
        step is marked failed.
        """
        result = StepResult(step_id=step.id, status=StepStatus.RUNNING, started_at=utcnow())
        execution.step_results[step.id] = result

        strategy = RetryStrategy.from_config(
            step.retry_config,
            default_backoff_ms=self._settings.RETRY_DEFAULT_BACKOFF_MS,
        )

        async def attempt() -> Any:
            result.attempts += 1
            return await control.guard(self._invoke_handler(step, execution))

        def log_retry(retry: int, error: Exception, delay: float) -> None:
            logger.warning(
                "Retrying step",
                step_id=step.id,
                attempt=retry,
                max_retries=strategy.max_retries,
                delay_s=delay,
                error=str(error),
            )

        try:
            output = await execute_with_retry(attempt, strategy, on_retry=log_retry, sleep=control.sleep)
        except (ExecutionCancelledError, ExecutionTimeoutError, asyncio.CancelledError) as e:
            result.status = StepStatus.FAILED
            result.error = str(e) or str(ExecutionCancelledError(execution.id))
            result.completed_at = utcnow()
            raise
        except Exception as e:
            result.status = StepStatus.FAILED
            result.error = e.message if isinstance(e, OrchestratorException) else (str(e) or type(e).__name__)
            result.completed_at = utcnow()
            return result

        self._store_output(step, execution, output)
        result.status = StepStatus.COMPLETED
        result.output = output
        result.completed_at = utcnow()
        logger.info(
            "Step completed",
            step_id=step.id,
            step_type=step.type,
            attempts=result.attempts,
            duration_ms=result.duration_ms,
        )
        return result

    async def _invoke_handler(self, step: WorkflowStep, execution: WorkflowExecution) -> Any:
        handler = self._task_registry.create_instance(step.type)
        if handler is None:
            raise StepExecutionError(f"Unknown step type: {step.type}", step_id=step.id)

        context = StepContext(
            execution_id=execution.id,
            workflow_id=execution.workflow_id,
            step_id=step.id,
            variables=MappingProxyType(dict(execution.variables)),
            settings=self._settings,
            chat_client=self._chat_client,
            http_client=self._http_client,
            get_webhook=self._registry.get_webhook,
        )
        return await handler.run(step.config, context)

    @staticmethod
    def _store_output(step: WorkflowStep, execution: WorkflowExecution, output: Any) -> None:
        name = step.config.get("outputVariable")
        if name:
            execution.variables[name] = output

    def cancel_execution(self, execution_id: str) -> bool:
        """Cancel a running execution.

        Returns:
            True if the execution was running, False otherwise
        """
        control = self._running.get(execution_id)
        if control is None:
            return False
        control.cancel()
        logger.info("Execution marked for cancellation", execution_id=execution_id)
        return True

    def get_running_executions(self) -> list[str]:
        return list(self._running)
