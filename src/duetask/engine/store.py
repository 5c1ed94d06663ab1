# src/duetask/engine/store.py

"""
The task store.

`TaskStore` owns the one task collection of a session. Every mutating
call swaps the whole tuple for the next one produced by `actions`, then
saves it through the blob store. A failed save is logged and does not
undo the change: the in-memory state is authoritative for the session.

The read views below are plain functions over a collection so they can
be used without a store.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from . import actions
from .dates import DueLike, is_overdue
from .model import Counts, Filter, Task, Tasks
from .ops import BlobStore, encode_tasks, make_id
from .parse import decode_tasks
from .retention import prune

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
IdFactory = Callable[[Tasks], str]


# ---------------------------------------------------------------------
# Read views
# ---------------------------------------------------------------------

def visible(tasks: Tasks) -> list[Task]:
    """Non-archived tasks, newest first."""
    return [t for t in tasks if t.archived_at is None]


def archived(tasks: Tasks) -> list[Task]:
    """Archived tasks, most recently archived first."""
    out = [t for t in tasks if t.archived_at is not None]
    out.sort(key=lambda t: t.archived_at, reverse=True)
    return out


def by_filter(tasks: Tasks, flt: Filter | str) -> list[Task]:
    """Visible tasks narrowed by `flt`."""
    flt = Filter(flt)
    shown = visible(tasks)

    if flt is Filter.ACTIVE:
        return [t for t in shown if not t.completed]
    if flt is Filter.COMPLETED:
        return [t for t in shown if t.completed]
    return shown


def counts(tasks: Tasks, now: datetime) -> Counts:
    shown = visible(tasks)
    remaining = [t for t in shown if not t.completed]
    overdue = [t for t in remaining if t.due is not None and is_overdue(t.due, now)]

    return Counts(
        total=len(shown),
        completed=len(shown) - len(remaining),
        remaining=len(remaining),
        overdue=len(overdue),
    )


# ---------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------

def _default_id(tasks: Tasks) -> str:
    return make_id({t.task_id for t in tasks})


class TaskStore:
    """
    Owner of the task collection.

    Every method that needs the time accepts `now`; when omitted the
    injected clock is read once per call.
    """

    def __init__(
        self,
        tasks: Tasks = (),
        *,
        backend: Optional[BlobStore] = None,
        clock: Clock = datetime.now,
        id_factory: IdFactory = _default_id,
    ) -> None:
        self._tasks: Tasks = tuple(tasks)
        self._backend = backend
        self._clock = clock
        self._id_factory = id_factory

    @classmethod
    def load(
        cls,
        backend: BlobStore,
        *,
        now: Optional[datetime] = None,
        clock: Clock = datetime.now,
        id_factory: IdFactory = _default_id,
    ) -> "TaskStore":
        """
        Build a store from `backend`, discarding expired archived tasks.
        """
        now = now or clock()
        tasks = decode_tasks(backend.load(), now=now)
        store = cls(tasks, backend=backend, clock=clock, id_factory=id_factory)
        store.prune(now=now)
        return store

    # -----------------------------------------------------------------
    # State
    # -----------------------------------------------------------------

    @property
    def tasks(self) -> Tasks:
        """The current snapshot; never mutated after it is handed out."""
        return self._tasks

    def get(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.task_id == task_id:
                return task
        return None

    def find(self, prefix: str) -> list[Task]:
        """Tasks whose id is `prefix` or starts with it."""
        exact = self.get(prefix)
        if exact is not None:
            return [exact]
        return [t for t in self._tasks if t.task_id.startswith(prefix)]

    def _now(self, now: Optional[datetime]) -> datetime:
        return now if now is not None else self._clock()

    def _commit(self, next_tasks: Tasks) -> bool:
        if next_tasks is self._tasks:
            return False

        self._tasks = next_tasks
        self._persist()
        return True

    def _persist(self) -> None:
        if self._backend is None:
            return

        try:
            self._backend.save(encode_tasks(self._tasks))
        except OSError as e:
            logger.warning("could not save tasks (changes kept in memory): %s", e)

    # -----------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------

    def create(self, text: Optional[str], due: Optional[DueLike] = None) -> Optional[Task]:
        """
        Add a task at the front. Returns None when `text` is blank.
        """
        task_id = self._id_factory(self._tasks)
        if self._commit(actions.add_task(self._tasks, text, due, task_id=task_id)):
            return self._tasks[0]
        return None

    def toggle(self, task_id: str, *, now: Optional[datetime] = None) -> Optional[Task]:
        self._commit(actions.toggle_task(self._tasks, task_id, now=self._now(now)))
        return self.get(task_id)

    def edit(self, task_id: str, text: Optional[str], due: Optional[DueLike] = None) -> Optional[Task]:
        self._commit(actions.edit_task(self._tasks, task_id, text, due))
        return self.get(task_id)

    def remove(self, task_id: str) -> None:
        self._commit(actions.remove_task(self._tasks, task_id))

    def archive_completed(self, *, now: Optional[datetime] = None) -> int:
        """Archive completed tasks; returns how many were archived."""
        before = len(archived(self._tasks))
        self._commit(actions.archive_completed(self._tasks, now=self._now(now)))
        return len(archived(self._tasks)) - before

    def clear_all_visible(self) -> int:
        """Remove every visible task; returns how many were removed."""
        before = len(self._tasks)
        self._commit(actions.clear_all_visible(self._tasks))
        return before - len(self._tasks)

    def replace_all(self, tasks: Tasks, *, now: Optional[datetime] = None) -> None:
        """Swap in a whole new collection (import), minus expired tasks."""
        self._commit(prune(tuple(tasks), self._now(now)))

    def prune(self, *, now: Optional[datetime] = None) -> int:
        """Re-apply retention; returns how many tasks expired."""
        before = len(self._tasks)
        self._commit(prune(self._tasks, self._now(now)))
        return before - len(self._tasks)

    # -----------------------------------------------------------------
    # Views
    # -----------------------------------------------------------------

    def visible(self) -> list[Task]:
        return visible(self._tasks)

    def archived(self) -> list[Task]:
        return archived(self._tasks)

    def by_filter(self, flt: Filter | str) -> list[Task]:
        return by_filter(self._tasks, flt)

    def counts(self, *, now: Optional[datetime] = None) -> Counts:
        return counts(self._tasks, self._now(now))
