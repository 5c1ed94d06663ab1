# src/duetask/engine/ops.py

"""
Storage-level operations.

This module contains:
- the blob store protocol and its file / in-memory implementations,
- task id generation,
- serialisation of the task collection into a blob.

No decoding is performed here (see parse.py).
"""

from __future__ import annotations

import logging
import os
import secrets
import tempfile
from collections.abc import Container
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml

from .dates import format_timestamp
from .model import Task, Tasks
from .parse import (
    KEY_ARCHIVED_AT,
    KEY_COMPLETED,
    KEY_COMPLETED_AT,
    KEY_DUE,
    KEY_ID,
    KEY_TEXT,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Blob stores
# ---------------------------------------------------------------------

class BlobStore(Protocol):
    """
    Opaque persistence for the serialised collection.
    """

    def load(self) -> Optional[bytes]: ...

    def save(self, blob: bytes) -> None: ...


class FileBlobStore:
    """
    A single file on disk.

    Writes go to a temporary sibling first and are then moved into
    place, so a crash never leaves a half-written file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def save(self, blob: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(blob)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("saved %d bytes to %s", len(blob), self.path)

    def __repr__(self) -> str:
        return f"FileBlobStore({str(self.path)!r})"


class MemoryBlobStore:
    """
    Keeps the blob in memory. `saves` counts writes.
    """

    def __init__(self, blob: Optional[bytes] = None) -> None:
        self.blob = blob
        self.saves = 0

    def load(self) -> Optional[bytes]:
        return self.blob

    def save(self, blob: bytes) -> None:
        self.blob = blob
        self.saves += 1


# ---------------------------------------------------------------------
# Ids
# ---------------------------------------------------------------------

def make_id(existing: Container[str] = ()) -> str:
    """
    Short random hex id, unique among `existing`.
    """
    while True:
        task_id = secrets.token_hex(4)
        if task_id not in existing:
            return task_id


# ---------------------------------------------------------------------
# Serialisation
# ---------------------------------------------------------------------

def task_to_dict(task: Task) -> dict[str, Any]:
    return {
        KEY_ID: task.task_id,
        KEY_TEXT: task.text,
        KEY_COMPLETED: task.completed,
        KEY_DUE: task.due.raw if task.due is not None else None,
        KEY_COMPLETED_AT: format_timestamp(task.completed_at) if task.completed_at else None,
        KEY_ARCHIVED_AT: format_timestamp(task.archived_at) if task.archived_at else None,
    }


def encode_tasks(tasks: Tasks) -> bytes:
    """
    Render the collection as a YAML sequence, in display order.
    """
    data = [task_to_dict(t) for t in tasks]
    text = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return text.encode("utf-8")
