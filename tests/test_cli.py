# tests/test_cli.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import shutil
import subprocess
from types import SimpleNamespace

import pytest
import yaml

from duetask.cli import main
from duetask.engine.model import Task
from duetask.engine.parse import decode_tasks

NOW = "2024-06-10T12:00"


@pytest.fixture()
def db(tmp_path: Path, monkeypatch) -> Path:
    for name in ("DUETASK_STORE", "DUETASK_LOG_LEVEL", "DUETASK_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path / "tasks.yml"


def run(capsys, db: Path, *argv: str, now: str = NOW) -> tuple[int, str]:
    code = main(["--store", str(db), "--now", now, "--no-color", *argv])
    return code, capsys.readouterr().out


def stored(db: Path) -> tuple[Task, ...]:
    return decode_tasks(db.read_bytes(), now=datetime(2024, 6, 10, 12, 0))


def test_add_toggle_archive_and_expire(capsys, db: Path):
    code, out = run(capsys, db, "add", "Buy milk")
    assert code == 0
    (task,) = stored(db)
    assert out.strip() == f"Added {task.task_id}: Buy milk"

    code, out = run(capsys, db, "list", "--filter", "active")
    assert "1 remaining" in out
    assert "[ ] Buy milk" in out

    code, out = run(capsys, db, "toggle", task.task_id[:5])
    assert out.strip() == f"{task.task_id}: done"

    code, out = run(capsys, db, "list", "-f", "completed")
    assert "[x] Buy milk" in out

    code, out = run(capsys, db, "archive")
    assert out.strip() == "Archived 1 completed task(s)."

    code, out = run(capsys, db, "list")
    assert "No tasks." in out

    code, out = run(capsys, db, "archived")
    assert "Buy milk  (Keeps for 30 more days)" in out

    code, out = run(capsys, db, "archived", now="2024-07-12T12:00")
    assert "Archive is empty." in out
    assert stored(db) == ()


def test_blank_text_is_ignored(capsys, db: Path):
    code, out = run(capsys, db, "add", "   ")

    assert code == 0
    assert "Nothing added" in out
    assert not db.exists()


def test_due_labels_in_list(capsys, db: Path):
    run(capsys, db, "add", "Report", "--due", "2024-06-09")
    run(capsys, db, "add", "Dentist", "--due", "2024-06-11T09:30")
    run(capsys, db, "add", "Groceries", "--due", "2024-06-10")

    code, out = run(capsys, db, "list")

    assert "3 remaining, 1 overdue" in out
    assert "[ ] Groceries  (Due today)" in out
    assert "[ ] Dentist  (Due tomorrow at 09:30)" in out
    assert "[ ] Report  (Overdue)" in out
    assert out.index("Groceries") < out.index("Dentist") < out.index("Report")


def test_calendar_shows_due_counts(capsys, db: Path):
    run(capsys, db, "add", "Whole day", "--due", "2024-06-10")
    run(capsys, db, "add", "Morning", "--due", "2024-06-10T09:00")

    code, out = run(capsys, db, "calendar", "--month", "2024-06")

    assert code == 0
    assert "June 2024" in out
    assert "2024-06-10: 2 tasks due:" in out
    assert "  - Morning" in out

    code, out = run(capsys, db, "calendar", "--month", "2024-06", "--next", "1")
    assert "July 2024" in out
    assert "tasks due" not in out

    code, out = run(capsys, db, "calendar", "--month", "2024-13")
    assert code == 1


def test_calendar_navigation_past_the_supported_years(capsys, db: Path):
    code, out = run(capsys, db, "calendar", "--month", "0001-01", "--prev", "1")
    assert code == 1
    assert "month out of range" in out

    code, out = run(capsys, db, "calendar", "--month", "9999-12", "--next", "1")
    assert code == 1

    code, out = run(capsys, db, "calendar", "--month", "0001-01")
    assert code == 0
    assert "January 1" in out


def test_edit_and_cancel(capsys, db: Path):
    run(capsys, db, "add", "Draft", "--due", "2024-06-20")
    (task,) = stored(db)

    code, out = run(capsys, db, "edit", task.task_id, "--text", "  ")
    assert "Edit cancelled" in out
    assert stored(db)[0].text == "Draft"

    run(capsys, db, "edit", task.task_id, "--text", "Final")
    (edited,) = stored(db)
    assert edited.text == "Final"
    assert edited.due is not None and edited.due.raw == "2024-06-20"

    run(capsys, db, "edit", task.task_id, "--due", "")
    assert stored(db)[0].due is None


def test_rm_clear_and_stats(capsys, db: Path):
    run(capsys, db, "add", "one")
    run(capsys, db, "add", "two")
    run(capsys, db, "add", "three")
    newest, middle, _oldest = stored(db)

    run(capsys, db, "rm", newest.task_id)
    run(capsys, db, "toggle", middle.task_id)
    run(capsys, db, "archive")

    code, out = run(capsys, db, "stats")
    assert "total:     1" in out
    assert "remaining: 1" in out

    code, out = run(capsys, db, "clear", "--yes")
    assert out.strip() == "Deleted 1 task(s)."
    assert [t.text for t in stored(db)] == ["two"]


def test_unknown_task_and_bad_clock(capsys, db: Path):
    run(capsys, db, "add", "something")

    code, out = run(capsys, db, "toggle", "zzzz")
    assert code == 1
    assert "Task not found: zzzz" in out

    code, out = run(capsys, db, "list", now="whenever")
    assert code == 1
    assert "Invalid --now" in out


def test_export_import_and_validate(capsys, db: Path, tmp_path: Path):
    run(capsys, db, "add", "Keep me", "--due", "2024-06-12")
    out_file = tmp_path / "export.yml"

    code, out = run(capsys, db, "export", "--out", str(out_file))
    assert code == 0
    assert yaml.safe_load(out_file.read_text(encoding="utf-8"))[0]["text"] == "Keep me"

    other = tmp_path / "other.yml"
    code, out = run(capsys, other, "import", str(out_file))
    assert "Imported 1 task(s)" in out
    assert [t.text for t in stored(other)] == ["Keep me"]

    code, out = run(capsys, other, "validate")
    assert code == 0
    assert out.strip() == "OK"


def test_import_reads_web_app_json(capsys, db: Path, tmp_path: Path):
    legacy = tmp_path / "todos.json"
    legacy.write_text(
        '[{"id": "1718000000000-9f1c", "text": "From the browser", "completed": true,'
        ' "dueDate": "2024-06-10T09:00", "completedAt": null, "archivedAt": null}]',
        encoding="utf-8",
    )

    run(capsys, db, "import", str(legacy))
    (task,) = stored(db)

    assert task.task_id == "1718000000000-9f1c"
    assert task.completed is True
    assert task.completed_at == datetime(2024, 6, 10, 12, 0)


def test_show(capsys, db: Path):
    run(capsys, db, "add", "Dentist", "--due", "2024-06-11T09:30")
    (task,) = stored(db)

    code, out = run(capsys, db, "show", task.task_id)

    assert code == 0
    assert "Dentist" in out
    assert "due: Tue, Jun 11, 2024, 09:30" in out
    assert "Due tomorrow at 09:30" in out


def test_toggle_without_id_asks_for_a_number(capsys, db: Path, monkeypatch):
    run(capsys, db, "add", "one")
    run(capsys, db, "add", "two")
    monkeypatch.setattr(shutil, "which", lambda name: None)
    monkeypatch.setattr("builtins.input", lambda prompt="": "2")

    code, out = run(capsys, db, "toggle")

    assert code == 0
    assert "1) two (open)" in out
    assert "2) one (open)" in out
    assert [(t.text, t.completed) for t in stored(db)] == [("two", False), ("one", True)]


def test_blank_or_bad_selection_cancels(capsys, db: Path, monkeypatch):
    run(capsys, db, "add", "one")
    run(capsys, db, "add", "two")
    monkeypatch.setattr(shutil, "which", lambda name: None)

    for answer in ("", "7", "x"):
        monkeypatch.setattr("builtins.input", lambda prompt="", a=answer: a)
        code, out = run(capsys, db, "rm")
        assert code == 1
        assert "Cancelled" in out

    assert len(stored(db)) == 2


def test_selection_goes_through_fzf_when_installed(capsys, db: Path, monkeypatch):
    run(capsys, db, "add", "one")
    run(capsys, db, "add", "two")
    first = stored(db)[1]
    seen = {}

    def fake_fzf(cmd, input, **kwargs):
        seen["input"] = input
        return SimpleNamespace(returncode=0, stdout=f"{first.task_id}\tone (open)\n")

    monkeypatch.setattr(shutil, "which", lambda name: "/usr/bin/fzf")
    monkeypatch.setattr(subprocess, "run", fake_fzf)

    code, out = run(capsys, db, "rm")

    assert code == 0
    assert out.strip() == f"Deleted {first.task_id}: one"
    assert f"{first.task_id}\tone (open)\n" in seen["input"]
    assert [t.text for t in stored(db)] == ["two"]


def test_single_task_is_picked_without_asking(capsys, db: Path, monkeypatch):
    run(capsys, db, "add", "only")
    monkeypatch.setattr(shutil, "which", lambda name: pytest.fail("no picker expected"))

    code, out = run(capsys, db, "toggle")

    assert code == 0
    assert stored(db)[0].completed is True
