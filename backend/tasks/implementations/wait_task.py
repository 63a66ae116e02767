"""Wait step: suspend the execution for a fixed duration."""

import asyncio
from typing import Any, Dict

from core.exceptions import StepExecutionError
from tasks.base_task import BaseTask, StepContext


class WaitTask(BaseTask):
    task_type = "wait"
    display_name = "Wait"
    description = "Pause the workflow for a number of milliseconds"

    async def execute(self, config: Dict[str, Any], context: StepContext) -> Any:
        duration = config.get("duration")
        if duration is None:
            duration = context.settings.WAIT_DEFAULT_DURATION_MS
        if isinstance(duration, bool) or not isinstance(duration, (int, float)) or duration < 0:
            raise StepExecutionError("Config 'duration' must be a non-negative number of milliseconds")

        await asyncio.sleep(duration / 1000)
        return {"waited": True}

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "duration": {"type": "number", "description": "Milliseconds", "default": 1000},
            },
        }


WAIT_TASK_TYPES = {
    "wait": WaitTask,
}
