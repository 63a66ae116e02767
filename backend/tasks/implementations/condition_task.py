"""Condition step: compare a variable against a value."""

import math
from typing import Any, Callable, Dict

import structlog

from tasks.base_task import BaseTask, StepContext
from workflow.templating import stringify

logger = structlog.get_logger(__name__)


def _to_number(value: Any) -> float:
    """Numeric coercion; anything unparseable becomes NaN (compares false)."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _strict_equals(left: Any, right: Any) -> bool:
    # Booleans never equal numbers
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


def _contains(left: Any, right: Any) -> bool:
    if left is None:
        return False
    return stringify(right) in stringify(left)


OPERATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "equals": _strict_equals,
    "notEquals": lambda left, right: not _strict_equals(left, right),
    "contains": _contains,
    "greaterThan": lambda left, right: _to_number(left) > _to_number(right),
    "lessThan": lambda left, right: _to_number(left) < _to_number(right),
    "exists": lambda left, _right: left is not None,
    "truthy": lambda left, _right: bool(left),
}


class ConditionTask(BaseTask):
    """Evaluate ``variables[variable] <operator> value`` to a boolean.

    Unknown operators evaluate to False.
    """

    task_type = "condition"
    display_name = "Condition"
    description = "Compare a workflow variable against a value"

    async def execute(self, config: Dict[str, Any], context: StepContext) -> bool:
        value = context.variables.get(config.get("variable"))
        operator = config.get("operator")

        compare = OPERATORS.get(operator)
        if compare is None:
            logger.warning("Unknown condition operator", operator=operator, step_id=context.step_id)
            return False
        return bool(compare(value, config.get("value")))

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        return {
            "type": "object",
            "required": ["variable", "operator"],
            "properties": {
                "variable": {"type": "string"},
                "operator": {"type": "string", "enum": list(OPERATORS)},
                "value": {},
                "outputVariable": {"type": "string"},
            },
        }


CONDITION_TASK_TYPES = {
    "condition": ConditionTask,
}
