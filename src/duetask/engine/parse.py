# src/duetask/engine/parse.py

"""
Task collection decoder.

Turns a stored blob into a tuple of Task models.

Blob format: a YAML sequence of mappings (JSON is accepted as well,
being a subset of YAML):

    - id: "3f9c2a1b"
      text: "Buy milk"
      completed: true
      dueDate: "2024-06-10T09:00"
      completedAt: "2024-06-09T18:12:03.000Z"
      archivedAt: null

Decoding never fails. A blob that cannot be read, or whose root is not
a sequence, yields an empty collection. Fields missing from older data
get safe defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Final, Optional

import yaml

from .dates import DueDate, parse_due, parse_timestamp
from .model import Task, Tasks

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Field names
# ---------------------------------------------------------------------

KEY_ID: Final[str] = "id"
KEY_TEXT: Final[str] = "text"
KEY_COMPLETED: Final[str] = "completed"
KEY_DUE: Final[str] = "dueDate"
KEY_COMPLETED_AT: Final[str] = "completedAt"
KEY_ARCHIVED_AT: Final[str] = "archivedAt"


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ParseError(Exception):
    """
    Raised for a single entry that cannot become a Task.

    Never escapes `decode_tasks`; the entry is skipped instead.
    """

    index: int
    message: str

    def __str__(self) -> str:
        return f"entry {self.index}: {self.message}"


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def decode_tasks(blob: Optional[bytes], *, now: datetime) -> Tasks:
    """
    Decode a stored blob.

    `now` back-fills completion timestamps missing from older data.
    """
    if not blob:
        return ()

    try:
        data = yaml.safe_load(blob.decode("utf-8"))
    except (UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable task data: %s", e)
        return ()

    if data is None:
        return ()

    if not isinstance(data, list):
        logger.warning("ignoring task data: root is %s, expected a list", type(data).__name__)
        return ()

    out: list[Task] = []
    seen: set[str] = set()

    for i, item in enumerate(data, start=1):
        try:
            task = parse_entry(i, item, now=now)
        except ParseError as e:
            logger.warning("skipping %s", e)
            continue

        if task.task_id in seen:
            logger.warning("skipping entry %d: duplicate id %r", i, task.task_id)
            continue

        seen.add(task.task_id)
        out.append(task)

    return tuple(out)


def parse_entry(index: int, item: Any, *, now: datetime) -> Task:
    """
    Normalise one stored entry.

    Defaults:
    - completed: False
    - completedAt: `now` when completed but missing
    - completedAt / archivedAt: dropped when not completed
    - dueDate: None
    """
    if not isinstance(item, dict):
        raise ParseError(index, "must be a mapping")

    task_id = _require_str_field(index, item, KEY_ID)
    text = _require_str_field(index, item, KEY_TEXT)

    completed = bool(item.get(KEY_COMPLETED, False))
    due = _parse_due_field(item.get(KEY_DUE))

    completed_at: Optional[datetime] = None
    archived_at: Optional[datetime] = None

    if completed:
        completed_at = parse_timestamp(item.get(KEY_COMPLETED_AT)) or now

        raw_archived = item.get(KEY_ARCHIVED_AT)
        if raw_archived is not None:
            archived_at = parse_timestamp(raw_archived)
            if archived_at is None:
                logger.warning("entry %d: unreadable %s %r, archiving as of now", index, KEY_ARCHIVED_AT, raw_archived)
                archived_at = now

    return Task(
        task_id=task_id,
        text=text,
        completed=completed,
        due=due,
        completed_at=completed_at,
        archived_at=archived_at,
    )


# ---------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------

def _require_str_field(index: int, data: dict[str, Any], key: str) -> str:
    if key not in data:
        raise ParseError(index, f"missing required key: {key}")

    value = data[key]
    if isinstance(value, int) and not isinstance(value, bool):
        value = str(value)

    if not isinstance(value, str):
        raise ParseError(index, f"key '{key}' must be a string")

    if not value.strip():
        raise ParseError(index, f"key '{key}' must be a non-empty string")

    return value


def _parse_due_field(value: Any) -> Optional[DueDate]:
    """
    Due dates are strings; unquoted YAML dates arrive as date/datetime.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return parse_due(value.isoformat(timespec="minutes"))

    if isinstance(value, date):
        return parse_due(value.isoformat())

    return parse_due(str(value))
