# src/duetask/engine/model.py

"""
Core domain models.

This module defines the in-memory representation of a task, the list
filters and the count aggregate, along with the task invariants.

Tasks are frozen values: every change produces a new Task, and every
change to the collection produces a new tuple.

No storage access should happen here.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from .dates import DueDate


# ---------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------

class Filter(str, Enum):
    """
    List filters over visible tasks.
    """

    ALL = "all"
    ACTIVE = "active"
    COMPLETED = "completed"


# ---------------------------------------------------------------------
# Task
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Task:
    """
    A single task.

    Notes:
    - task_id is assigned at creation and never changes.
    - completed_at is set exactly while completed is True.
    - archived_at may only be set while completed is True.
    """

    # Identity / content
    task_id: str
    text: str

    # Lifecycle
    completed: bool = False
    due: Optional[DueDate] = None

    # Temporal fields (local naive)
    completed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    # -----------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------

    def validate(self) -> None:
        """
        Validate lifecycle invariants.
        """
        if not self.task_id or not self.task_id.strip():
            raise ValueError("task_id must be a non-empty string")

        if not self.text or not self.text.strip():
            raise ValueError("text must be a non-empty string")

        if not self.completed:
            if self.completed_at is not None:
                raise ValueError("completed_at must be empty while the task is not completed")
            if self.archived_at is not None:
                raise ValueError("archived_at must be empty while the task is not completed")

    # -----------------------------------------------------------------
    # Convenience properties
    # -----------------------------------------------------------------

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    @property
    def is_visible(self) -> bool:
        return self.archived_at is None


Tasks = tuple[Task, ...]


# ---------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Counts:
    """
    Counts over visible tasks.

    `overdue` only counts incomplete tasks.
    """

    total: int
    completed: int
    remaining: int
    overdue: int
