"""Transform step: reshape execution variables without leaving the process."""

import json
from collections.abc import Mapping
from typing import Any, Dict

from core.exceptions import StepExecutionError
from tasks.base_task import BaseTask, StepContext
from workflow.templating import extract_path, interpolate


class TransformTask(BaseTask):
    """Apply a data transform to a variable (or to all variables).

    Config:
        transformType: json-parse | json-stringify | extract | merge | template
        input: Variable name to read (default: the whole variable mapping)
        path: Dot path for ``extract``
        sources: Variable names for ``merge`` (later sources win)
        template: Template string for ``template``

    Unknown transform types pass the input through unchanged.
    """

    task_type = "transform"
    display_name = "Transform"
    description = "Parse, serialize, extract, merge or template workflow data"

    async def execute(self, config: Dict[str, Any], context: StepContext) -> Any:
        variables = context.variables
        input_name = config.get("input")
        data = variables.get(input_name) if input_name else dict(variables)

        transform_type = config.get("transformType")

        if transform_type == "json-parse":
            return json.loads(data) if isinstance(data, str) else data

        if transform_type == "json-stringify":
            return json.dumps(data, indent=2, ensure_ascii=False)

        if transform_type == "extract":
            return extract_path(data, self.require(config, "path"))

        if transform_type == "merge":
            return self._merge(config, variables)

        if transform_type == "template":
            return interpolate(self.require(config, "template"), variables)

        return data

    def _merge(self, config: Dict[str, Any], variables: Mapping) -> dict:
        sources = self.require(config, "sources", list)
        merged: dict = {}
        for name in sources:
            value = variables.get(name)
            if value is None:
                continue
            if not isinstance(value, Mapping):
                raise StepExecutionError(f"Cannot merge variable '{name}': not an object")
            merged.update(value)
        return merged

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "transformType": {
                    "type": "string",
                    "enum": ["json-parse", "json-stringify", "extract", "merge", "template"],
                },
                "input": {"type": "string"},
                "path": {"type": "string"},
                "sources": {"type": "array", "items": {"type": "string"}},
                "template": {"type": "string"},
                "outputVariable": {"type": "string"},
            },
        }


TRANSFORM_TASK_TYPES = {
    "transform": TransformTask,
}
