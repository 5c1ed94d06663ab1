# src/duetask/engine/retention.py

"""
Archive retention.

Archived tasks are kept for a fixed window and then purged for good.
The policy is stateless; callers decide when to apply it (once at load,
then again whenever the collection is observed).
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Final, Optional

from .model import Task, Tasks

logger = logging.getLogger(__name__)


RETENTION_MS: Final[int] = 30 * 24 * 60 * 60 * 1000
RETENTION: Final[timedelta] = timedelta(milliseconds=RETENTION_MS)

_DAY: Final[timedelta] = timedelta(days=1)


def _instant(dt: datetime) -> datetime:
    """Pin a naive local datetime to its UTC offset at that moment."""
    return dt.astimezone()


def expires_at(task: Task) -> Optional[datetime]:
    """The aware instant the retention window ends, or None."""
    if task.archived_at is None:
        return None
    return _instant(task.archived_at) + RETENTION


def is_expired(task: Task, now: datetime) -> bool:
    """
    True once more than the retention window has elapsed since archival.

    Elapsed time is measured between instants, not wall-clock readings.
    """
    if task.archived_at is None:
        return False
    return _instant(now) - _instant(task.archived_at) > RETENTION


def prune(tasks: Tasks, now: datetime) -> Tasks:
    """
    Drop expired archived tasks.

    Returns `tasks` itself when nothing expired.
    """
    kept = tuple(t for t in tasks if not is_expired(t, now))
    if len(kept) == len(tasks):
        return tasks

    logger.info("pruned %d expired archived task(s)", len(tasks) - len(kept))
    return kept


def remaining_label(task: Task, now: datetime) -> str:
    """
    "Expires today" once the expiry instant is reached, otherwise
    "Keeps for N more day(s)" rounded up to whole days.
    """
    expiry = expires_at(task)
    if expiry is None:
        return ""

    left = expiry - _instant(now)
    if left <= timedelta(0):
        return "Expires today"

    days = math.ceil(left / _DAY)
    return f"Keeps for {days} more day{'' if days == 1 else 's'}"
