# src/duetask/engine/validate.py

"""
Collection validation rules.

Checks a task collection against the lifecycle invariants and reports
every problem found instead of stopping at the first one.

Decoding already repairs most stored data, so issues here usually point
at a hand-edited store file or a bug.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

from .model import Task


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class ValidationError(Exception):
    """
    Fatal error used for command flow control.

    Raised when a command must stop immediately (e.g. unknown task id).
    """


# ---------------------------------------------------------------------
# Result objects
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """
    A single validation problem.

    `code` is a stable identifier suitable for tests and filtering.
    """

    task_id: str
    code: str
    message: str


@dataclass(frozen=True, slots=True)
class ValidationResult:
    issues: Sequence[ValidationIssue]

    @property
    def ok(self) -> bool:
        return not self.issues


# ---------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------

def validate_tasks(tasks: Iterable[Task]) -> ValidationResult:
    issues: list[ValidationIssue] = []
    seen: set[str] = set()

    for task in tasks:
        if task.task_id in seen:
            issues.append(
                ValidationIssue(
                    task_id=task.task_id,
                    code="id_duplicate",
                    message=f"Task id '{task.task_id}' is used more than once",
                )
            )
        seen.add(task.task_id)

        try:
            task.validate()
        except ValueError as e:
            issues.append(
                ValidationIssue(
                    task_id=task.task_id,
                    code="model_invariant",
                    message=str(e),
                )
            )

        if task.due is not None and not task.due.is_valid:
            issues.append(
                ValidationIssue(
                    task_id=task.task_id,
                    code="due_invalid",
                    message=f"Unreadable due date '{task.due.raw}'",
                )
            )

    return ValidationResult(issues=tuple(issues))
