"""Variable interpolation and dot-path extraction for step configs.

Placeholders are flat: ``{{name}}`` looks up ``name`` in the execution
variables. Unknown names are left in place so a later step (or a human)
can still see what was expected.
"""

import json
import re
from typing import Any, Mapping

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def stringify(value: Any) -> str:
    """Render a variable the way it should appear inside text."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def interpolate(template: str, variables: Mapping[str, Any]) -> str:
    """Replace ``{{name}}`` placeholders with values from ``variables``.

    >>> interpolate("Hello {{name}}", {"name": "Ann"})
    'Hello Ann'
    >>> interpolate("Hello {{missing}}", {})
    'Hello {{missing}}'
    """
    if not isinstance(template, str):
        return template

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        return stringify(variables[key])

    return PLACEHOLDER_PATTERN.sub(_replace, template)


def extract_path(data: Any, path: str) -> Any:
    """Resolve a dot path like ``a.b.0.c`` against nested dicts/lists.

    Returns None as soon as a segment is missing.
    """
    if not path:
        return data

    current = data
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        elif isinstance(current, (list, tuple)):
            try:
                current = current[int(part)]
            except (ValueError, IndexError):
                return None
        else:
            return None
    return current
