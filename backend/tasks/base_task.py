"""
Base interface for all workflow step handlers.

Every step type (agent, http, transform, condition, wait) inherits from
BaseTask and implements execute(). Handlers read variables from a
read-only snapshot and return their output; the engine stores that output
under ``config.outputVariable`` when the step declares one.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

import structlog

from app.config import Settings
from core.exceptions import StepExecutionError

logger = structlog.get_logger(__name__)


@dataclass
class StepContext:
    """What a handler may see of the execution it runs in."""
    execution_id: str
    workflow_id: str
    step_id: str
    variables: Mapping[str, Any]
    settings: Settings
    chat_client: Any = None
    http_client: Any = None
    get_webhook: Optional[Callable[[str], Any]] = None


class BaseTask(ABC):
    """
    Abstract base class for step handlers.

    Subclasses must implement:
    - execute(config, context) -> output
    - task_type (class property)
    - display_name (class property)
    """

    task_type: str = "base"
    display_name: str = "Base Task"
    description: str = "Abstract base task"

    @abstractmethod
    async def execute(self, config: Dict[str, Any], context: StepContext) -> Any:
        """
        Execute the step with its configuration.

        Args:
            config: Step-specific configuration (from the workflow step)
            context: Execution context (variables snapshot, clients, settings)

        Returns:
            The step output

        Raises:
            Any exception on failure; run() normalizes it.
        """

    async def run(self, config: Dict[str, Any], context: StepContext) -> Any:
        """
        Run the handler with timing and error normalization.

        This is the entry point called by the workflow engine. Failures are
        re-raised as StepExecutionError so the retry controller sees one type.
        """
        start = time.monotonic()
        logger.debug(
            "Task starting",
            task_type=self.task_type,
            step_id=context.step_id,
            execution_id=context.execution_id,
        )
        try:
            output = await self.execute(config, context)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            duration_ms = (time.monotonic() - start) * 1000
            logger.warning(
                "Task failed",
                task_type=self.task_type,
                step_id=context.step_id,
                error=str(e),
                duration_ms=round(duration_ms, 2),
            )
            if isinstance(e, StepExecutionError):
                if e.step_id is None:
                    e.step_id = context.step_id
                raise
            raise StepExecutionError(str(e) or type(e).__name__, step_id=context.step_id) from e

        logger.debug(
            "Task completed",
            task_type=self.task_type,
            step_id=context.step_id,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return output

    @staticmethod
    def require(config: Dict[str, Any], key: str, expected: type = str) -> Any:
        """Fetch a required config key or fail the step."""
        value = config.get(key)
        if value is None or (expected is str and value == ""):
            raise StepExecutionError(f"Missing required config: {key}")
        if not isinstance(value, expected):
            raise StepExecutionError(f"Config '{key}' must be of type {expected.__name__}")
        return value

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        """
        Return JSON schema for the step configuration.

        Override in subclasses to define expected config shape.
        """
        return {"type": "object", "properties": {}}
