# tests/test_retention.py

from __future__ import annotations

from datetime import datetime, timedelta

from duetask.engine.model import Task
from duetask.engine.retention import RETENTION, RETENTION_MS, is_expired, prune, remaining_label

NOW = datetime(2024, 6, 10, 12, 0)


def _archived(task_id: str, ago: timedelta) -> Task:
    at = NOW - ago
    return Task(task_id=task_id, text=task_id, completed=True, completed_at=at, archived_at=at)


def test_window_is_thirty_days_in_milliseconds():
    assert RETENTION_MS == 2_592_000_000
    assert RETENTION == timedelta(days=30)


def test_expiry_is_strictly_after_the_window():
    assert is_expired(_archived("a", RETENTION), NOW) is False
    assert is_expired(_archived("a", RETENTION + timedelta(milliseconds=1)), NOW) is True
    assert is_expired(Task(task_id="v", text="visible"), NOW) is False


def test_prune_removes_exactly_the_expired_tasks():
    tasks = (
        Task(task_id="open", text="open"),
        Task(task_id="done", text="done", completed=True, completed_at=NOW - timedelta(days=90)),
        _archived("fresh", timedelta(days=3)),
        _archived("edge", timedelta(days=30)),
        _archived("stale", timedelta(days=31)),
    )

    assert [t.task_id for t in prune(tasks, NOW)] == ["open", "done", "fresh", "edge"]


def test_prune_returns_the_same_collection_when_nothing_expired():
    tasks = (Task(task_id="open", text="open"), _archived("fresh", timedelta(days=1)))
    assert prune(tasks, NOW) is tasks


def test_remaining_label():
    assert remaining_label(_archived("a", timedelta(0)), NOW) == "Keeps for 30 more days"
    assert remaining_label(_archived("a", timedelta(days=28, hours=12)), NOW) == "Keeps for 2 more days"
    assert remaining_label(_archived("a", timedelta(days=29, hours=1)), NOW) == "Keeps for 1 more day"
    assert remaining_label(_archived("a", timedelta(days=30)), NOW) == "Expires today"
    assert remaining_label(_archived("a", timedelta(days=45)), NOW) == "Expires today"
    assert remaining_label(Task(task_id="v", text="visible"), NOW) == ""


def _archived_at(at: datetime) -> Task:
    return Task(task_id="a", text="a", completed=True, completed_at=at, archived_at=at)


def test_window_counts_elapsed_time_across_spring_forward(new_york_tz):
    task = _archived_at(datetime(2024, 3, 1, 12, 0))  # 17:00Z

    assert is_expired(task, datetime(2024, 3, 31, 12, 30)) is False  # 16:30Z
    assert remaining_label(task, datetime(2024, 3, 31, 12, 30)) == "Keeps for 1 more day"
    assert is_expired(task, datetime(2024, 3, 31, 13, 1)) is True  # 17:01Z


def test_window_counts_elapsed_time_across_fall_back(new_york_tz):
    task = _archived_at(datetime(2024, 10, 20, 12, 0))  # 16:00Z

    assert is_expired(task, datetime(2024, 11, 19, 10, 59)) is False  # 15:59Z
    assert is_expired(task, datetime(2024, 11, 19, 11, 30)) is True  # 16:30Z
    assert remaining_label(task, datetime(2024, 11, 19, 11, 30)) == "Expires today"
