# src/duetask/engine/actions.py

"""
Task collection transitions.

This module contains *all* state-changing operations on the task
collection: create, toggle, edit, remove and the two bulk actions.

Design principles:
- Every function takes the current collection and returns the next one.
- Nothing is mutated in place; unchanged input comes back as the same
  tuple object so callers can skip persistence.
- The current time is always passed in, never read here.
- Rejected input (empty text, unknown id) is a silent no-op.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from .dates import DueLike, coerce_due
from .model import Task, Tasks

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _normalise_text(text: Optional[str]) -> str:
    return (text or "").strip()


def _update_one(
    tasks: Tasks,
    task_id: str,
    change: Callable[[Task], Task],
) -> Tasks:
    """
    Apply `change` to the task with `task_id`.

    Returns `tasks` itself when the id is unknown or the task is unchanged.
    """
    for i, task in enumerate(tasks):
        if task.task_id != task_id:
            continue

        updated = change(task)
        if updated == task:
            return tasks
        return tasks[:i] + (updated,) + tasks[i + 1:]

    return tasks


# ---------------------------------------------------------------------
# Public actions
# ---------------------------------------------------------------------

def add_task(
    tasks: Tasks,
    text: Optional[str],
    due: Optional[DueLike] = None,
    *,
    task_id: str,
) -> Tasks:
    """
    Insert a new incomplete task at the front (newest first).

    Empty text after trimming leaves the collection unchanged.
    """
    trimmed = _normalise_text(text)
    if not trimmed:
        logger.debug("add ignored: empty text")
        return tasks

    task = Task(task_id=task_id, text=trimmed, due=coerce_due(due))
    logger.debug("add %s", task_id)
    return (task,) + tasks


def toggle_task(tasks: Tasks, task_id: str, *, now: datetime) -> Tasks:
    """
    Flip completion.

    Completing stamps completed_at; un-completing clears both
    completed_at and archived_at, so an archived task returns to the
    visible list.
    """

    def flip(task: Task) -> Task:
        if task.completed:
            return replace(task, completed=False, completed_at=None, archived_at=None)
        return replace(task, completed=True, completed_at=now)

    return _update_one(tasks, task_id, flip)


def edit_task(
    tasks: Tasks,
    task_id: str,
    text: Optional[str],
    due: Optional[DueLike] = None,
) -> Tasks:
    """
    Replace text and due date of a task.

    Empty text abandons the edit. A blank due date clears it.
    Completion state is never touched.
    """
    trimmed = _normalise_text(text)
    if not trimmed:
        logger.debug("edit %s abandoned: empty text", task_id)
        return tasks

    new_due = coerce_due(due)
    return _update_one(tasks, task_id, lambda t: replace(t, text=trimmed, due=new_due))


def remove_task(tasks: Tasks, task_id: str) -> Tasks:
    """Delete a task in any state."""
    kept = tuple(t for t in tasks if t.task_id != task_id)
    return tasks if len(kept) == len(tasks) else kept


def archive_completed(tasks: Tasks, *, now: datetime) -> Tasks:
    """
    Archive every completed task that is not archived yet.

    completed_at is back-filled with `now` when missing (older data).
    Already archived tasks are left alone, so this is idempotent.
    """
    changed = False
    out: list[Task] = []

    for task in tasks:
        if task.completed and task.archived_at is None:
            task = replace(
                task,
                archived_at=now,
                completed_at=task.completed_at or now,
            )
            changed = True
        out.append(task)

    return tuple(out) if changed else tasks


def clear_all_visible(tasks: Tasks) -> Tasks:
    """Remove every non-archived task, completed or not."""
    kept = tuple(t for t in tasks if t.archived_at is not None)
    return tasks if len(kept) == len(tasks) else kept
