"""
Step Type Registry: maps step ``type`` strings to handler classes.
"""

from typing import Dict, Optional, Type

from tasks.base_task import BaseTask
from tasks.implementations.agent_task import AGENT_TASK_TYPES
from tasks.implementations.condition_task import CONDITION_TASK_TYPES
from tasks.implementations.http_task import HTTP_TASK_TYPES
from tasks.implementations.transform_task import TRANSFORM_TASK_TYPES
from tasks.implementations.wait_task import WAIT_TASK_TYPES


class TaskRegistry:
    """Central registry for all step handler implementations."""

    def __init__(self):
        self._tasks: Dict[str, Type[BaseTask]] = {}
        self._register_builtin_tasks()

    def _register_builtin_tasks(self):
        """Register all built-in step types."""
        for group in (
            AGENT_TASK_TYPES,
            HTTP_TASK_TYPES,
            TRANSFORM_TASK_TYPES,
            CONDITION_TASK_TYPES,
            WAIT_TASK_TYPES,
        ):
            for task_type, task_class in group.items():
                self.register(task_type, task_class)

    def register(self, task_type: str, task_class: Type[BaseTask]):
        """Register a new step type (overrides an existing one)."""
        self._tasks[task_type] = task_class

    def get(self, task_type: str) -> Optional[Type[BaseTask]]:
        return self._tasks.get(task_type)

    def create_instance(self, task_type: str) -> Optional[BaseTask]:
        """Create a new handler instance by type."""
        task_class = self.get(task_type)
        if task_class:
            return task_class()
        return None

    def list_all(self) -> list:
        """List all registered step types with metadata."""
        return [
            {
                "task_type": task_type,
                "display_name": cls.display_name,
                "description": cls.description,
                "config_schema": cls.get_config_schema(),
            }
            for task_type, cls in self._tasks.items()
        ]

    @property
    def available_types(self) -> list:
        return list(self._tasks.keys())


_registry: Optional[TaskRegistry] = None


def get_task_registry() -> TaskRegistry:
    """Get or create the singleton task registry."""
    global _registry
    if _registry is None:
        _registry = TaskRegistry()
    return _registry
