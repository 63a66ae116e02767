"""Dependency resolution for workflow steps.

Depth-first topological sort with visiting/visited marker sets. Steps are
emitted after all of their dependencies; independent steps keep the order
in which the depth-first walk reaches them.
"""

from typing import Sequence

from core.exceptions import CircularDependencyError
from workflow.models import WorkflowStep


def topological_sort(steps: Sequence[WorkflowStep]) -> list[WorkflowStep]:
    """Order ``steps`` so that every step follows its ``depends_on`` entries.

    Dependency ids with no matching step are ignored.

    Raises:
        CircularDependencyError: on the first step re-entered while still
            being visited.
    """
    index = {}
    for step in steps:
        # First definition wins for duplicated ids, like a linear find()
        index.setdefault(step.id, step)

    ordered: list[WorkflowStep] = []
    visited: set[str] = set()
    visiting: set[str] = set()

    def visit(step: WorkflowStep) -> None:
        if step.id in visited:
            return
        if step.id in visiting:
            raise CircularDependencyError(step.id)

        visiting.add(step.id)
        for dep_id in step.depends_on or []:
            dep = index.get(dep_id)
            if dep is not None:
                visit(dep)
        visiting.discard(step.id)

        visited.add(step.id)
        ordered.append(step)

    for step in steps:
        visit(step)

    return ordered
