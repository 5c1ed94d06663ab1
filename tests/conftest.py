# tests/conftest.py

from __future__ import annotations

import itertools
import logging
import time
from datetime import datetime

import pytest

from duetask.engine.ops import MemoryBlobStore
from duetask.engine.store import TaskStore


@pytest.fixture()
def now() -> datetime:
    """A fixed local 'now': Monday 2024-06-10, noon."""
    return datetime(2024, 6, 10, 12, 0)


@pytest.fixture()
def backend() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture()
def store(backend: MemoryBlobStore, now: datetime) -> TaskStore:
    """
    TaskStore with a frozen clock and predictable ids (t1, t2, ...).
    """
    counter = itertools.count(1)
    return TaskStore(
        backend=backend,
        clock=lambda: now,
        id_factory=lambda tasks: f"t{next(counter)}",
    )


@pytest.fixture(autouse=True)
def _restore_logging():
    """
    The CLI reconfigures the root logger; put it back after each test.
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.captureWarnings(False)


@pytest.fixture()
def new_york_tz(monkeypatch):
    """
    Run the test with America/New_York as the host zone (DST on
    2024-03-10 and 2024-11-03).
    """
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")

    monkeypatch.setenv("TZ", "America/New_York")
    time.tzset()
    winter = datetime(2024, 1, 15).astimezone().utcoffset()
    summer = datetime(2024, 7, 15).astimezone().utcoffset()
    try:
        if winter == summer:
            pytest.skip("zoneinfo data for America/New_York is not installed")
        yield
    finally:
        monkeypatch.undo()
        time.tzset()
