# src/duetask/cli.py

"""
Command-line interface for duetask.

This module:
- defines argument parsing and subcommands,
- opens the task store and delegates all state changes to it,
- keeps user interaction (prompts, selection) here.

Every command loads the store fresh, which applies archive retention,
and prunes again right before rendering.
"""

import argparse
import logging
import shutil
import subprocess
from datetime import MAXYEAR, MINYEAR, datetime
from pathlib import Path
from typing import Optional

from duetask.config import Settings, get_settings
from duetask.engine.calview import MonthAnchor, due_index
from duetask.engine.dates import parse_timestamp
from duetask.engine.model import Filter, Task
from duetask.engine.ops import FileBlobStore, encode_tasks
from duetask.engine.parse import decode_tasks
from duetask.engine.render import (
    render_archive,
    render_calendar,
    render_counts,
    render_task_detail,
    render_task_list,
)
from duetask.engine.store import TaskStore
from duetask.engine.validate import ValidationError, validate_tasks
from duetask.logging_setup import setup_logging

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="duetask",
        description="duetask: a personal task tracker with due dates, calendar and archive.",
    )
    parser.add_argument(
        "--store",
        type=str,
        help="Task store file (default: ~/.duetask/tasks.yml or DUETASK_STORE env var)",
    )
    parser.add_argument(
        "--now",
        type=str,
        help="Use this local time instead of the clock (YYYY-MM-DDTHH:MM)",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable coloured output",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # ------------------------------------------------------------------
    # Read-only commands
    # ------------------------------------------------------------------

    p_list = sub.add_parser("list", help="List visible tasks")
    p_list.add_argument(
        "-f",
        "--filter",
        type=str,
        default=Filter.ALL.value,
        choices=[f.value for f in Filter],
        help="Which visible tasks to show (default: all)",
    )
    p_list.set_defaults(func=cmd_list)

    p_archived = sub.add_parser("archived", help="List archived tasks")
    p_archived.set_defaults(func=cmd_archived)

    p_calendar = sub.add_parser("calendar", help="Show a month with due-task counts")
    p_calendar.add_argument(
        "--month",
        type=str,
        help="Month to show as YYYY-MM (default: current month)",
    )
    nav = p_calendar.add_mutually_exclusive_group()
    nav.add_argument("--prev", type=int, default=0, metavar="N", help="Go back N months")
    nav.add_argument("--next", type=int, default=0, metavar="N", help="Go forward N months")
    p_calendar.set_defaults(func=cmd_calendar)

    p_stats = sub.add_parser("stats", help="Show task counts")
    p_stats.set_defaults(func=cmd_stats)

    p_show = sub.add_parser("show", help="Show a single task")
    p_show.add_argument("task_id", nargs="?", default="", help="Task id or unique prefix")
    p_show.set_defaults(func=cmd_show)

    p_validate = sub.add_parser("validate", help="Check the store for invariant violations")
    p_validate.set_defaults(func=cmd_validate)

    p_export = sub.add_parser("export", help="Write all tasks to a file")
    p_export.add_argument("--out", required=True, help="Output file path")
    p_export.set_defaults(func=cmd_export)

    # ------------------------------------------------------------------
    # Write commands
    # ------------------------------------------------------------------

    p_add = sub.add_parser("add", help="Add a new task")
    p_add.add_argument("text", help="Task text")
    p_add.add_argument(
        "--due",
        type=str,
        default="",
        help="Due date: YYYY-MM-DD (whole day) or YYYY-MM-DDTHH:MM",
    )
    p_add.set_defaults(func=cmd_add)

    p_toggle = sub.add_parser("toggle", help="Complete / un-complete a task")
    p_toggle.add_argument("task_id", nargs="?", default="", help="Task id or unique prefix")
    p_toggle.set_defaults(func=cmd_toggle)

    p_edit = sub.add_parser("edit", help="Change text and due date of a task")
    p_edit.add_argument("task_id", nargs="?", default="", help="Task id or unique prefix")
    p_edit.add_argument("--text", type=str, help="New text (blank cancels the edit)")
    p_edit.add_argument(
        "--due",
        type=str,
        help="New due date; blank clears it; omitted keeps the current one",
    )
    p_edit.set_defaults(func=cmd_edit)

    p_rm = sub.add_parser("rm", help="Delete a task")
    p_rm.add_argument("task_id", nargs="?", default="", help="Task id or unique prefix")
    p_rm.set_defaults(func=cmd_rm)

    p_archive = sub.add_parser("archive", help="Archive all completed tasks")
    p_archive.set_defaults(func=cmd_archive)

    p_clear = sub.add_parser("clear", help="Delete every visible task (archive is kept)")
    p_clear.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    p_clear.set_defaults(func=cmd_clear)

    p_import = sub.add_parser("import", help="Replace all tasks with the contents of a file")
    p_import.add_argument("file", help="YAML or JSON file (e.g. from `duetask export`)")
    p_import.set_defaults(func=cmd_import)

    return parser


# ---------------------------------------------------------------------
# Store / clock helpers
# ---------------------------------------------------------------------

def _now(args: argparse.Namespace) -> datetime:
    if args.now:
        now = parse_timestamp(args.now)
        if now is None:
            raise ValidationError(f"Invalid --now value: {args.now}")
        return now
    return datetime.now()


def _open_store(settings: Settings, now: datetime) -> TaskStore:
    backend = FileBlobStore(settings.store_path)
    return TaskStore.load(backend, now=now, clock=lambda: now)


def _color(args: argparse.Namespace) -> bool:
    return not bool(args.no_color)


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------

def cmd_list(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    store.prune(now=now)
    render_task_list(
        store.by_filter(args.filter),
        now,
        counts=store.counts(now=now),
        color=_color(args),
    )
    return 0


def cmd_archived(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    store.prune(now=now)
    render_archive(store.archived(), now, color=_color(args))
    return 0


def cmd_calendar(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    store.prune(now=now)

    if args.month:
        try:
            year_s, month_s = args.month.split("-", 1)
            anchor = MonthAnchor(year=int(year_s), month_index=int(month_s) - 1)
        except ValueError:
            print(f"Error: invalid --month '{args.month}' (expected YYYY-MM)")
            return 1
        if not 0 <= anchor.month_index <= 11:
            print(f"Error: invalid --month '{args.month}' (expected YYYY-MM)")
            return 1
    else:
        anchor = MonthAnchor.containing(now.date())

    anchor = anchor.shift(args.next - args.prev)
    if not MINYEAR <= anchor.year <= MAXYEAR:
        print(f"Error: month out of range (years {MINYEAR}..{MAXYEAR})")
        return 1

    render_calendar(anchor, due_index(store.visible()), now, color=_color(args))
    return 0


def cmd_stats(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    store.prune(now=now)
    render_counts(store.counts(now=now))
    return 0


def cmd_show(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    task = _choose_task(store, args.task_id)
    render_task_detail(task, now, color=_color(args))
    return 0


def cmd_validate(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    res = validate_tasks(store.tasks)
    if res.ok:
        print("OK")
        return 0

    for issue in res.issues:
        print(f"{issue.task_id}: {issue.code}: {issue.message}")
    return 1


def cmd_export(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    out = Path(args.out).expanduser().resolve()
    out.write_bytes(encode_tasks(store.tasks))
    print(f"Exported {len(store.tasks)} task(s) to: {out}")
    return 0


def cmd_add(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    task = store.create(args.text, args.due)
    if task is None:
        print("Nothing added: task text is empty.")
        return 0

    print(f"Added {task.task_id}: {task.text}")
    return 0


def cmd_toggle(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    task = _choose_task(store, args.task_id)
    updated = store.toggle(task.task_id, now=now)
    state = "done" if updated is not None and updated.completed else "open"
    print(f"{task.task_id}: {state}")
    return 0


def cmd_edit(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    task = _choose_task(store, args.task_id)

    text = args.text if args.text is not None else task.text
    due = args.due if args.due is not None else task.due

    store.edit(task.task_id, text, due)
    if not text.strip():
        print("Edit cancelled: task text is empty.")
        return 0

    print(f"Updated {task.task_id}")
    return 0


def cmd_rm(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    task = _choose_task(store, args.task_id)
    store.remove(task.task_id)
    print(f"Deleted {task.task_id}: {task.text}")
    return 0


def cmd_archive(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    n = store.archive_completed(now=now)
    print(f"Archived {n} completed task(s).")
    return 0


def cmd_clear(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    shown = len(store.visible())
    if not shown:
        print("Nothing to clear.")
        return 0

    if not args.yes:
        ans = input(f"Delete {shown} visible task(s)? [y/N] ").strip().lower()
        if ans not in {"y", "yes"}:
            print("Cancelled.")
            return 0

    n = store.clear_all_visible()
    print(f"Deleted {n} task(s).")
    return 0


def cmd_import(args: argparse.Namespace, store: TaskStore, now: datetime) -> int:
    src = Path(args.file).expanduser().resolve()
    try:
        blob = src.read_bytes()
    except OSError as e:
        raise ValidationError(f"Cannot read {src}: {e}") from e

    store.replace_all(decode_tasks(blob, now=now), now=now)
    print(f"Imported {len(store.tasks)} task(s) from: {src}")
    return 0


# ---------------------------------------------------------------------
# Task selection helpers
# ---------------------------------------------------------------------

def _pick_label(task: Task) -> str:
    state = "done" if task.completed else "open"
    if task.archived_at is not None:
        state = "archived"
    return f"{task.text} ({state})"


def _pick_with_fzf(tasks: list[Task]) -> Optional[str]:
    lines = "".join(f"{t.task_id}\t{_pick_label(t)}\n" for t in tasks)
    p = subprocess.run(
        ["fzf", "--with-nth=2..", "--delimiter=\t"],
        input=lines,
        text=True,
        capture_output=True,
    )
    picked = (p.stdout or "").strip() if p.returncode == 0 else ""
    return picked.split("\t", 1)[0] or None


def _pick_by_number(tasks: list[Task]) -> Optional[str]:
    for n, task in enumerate(tasks, start=1):
        print(f"{n}) {_pick_label(task)} [{task.task_id}]")

    answer = input("Select task number (blank to cancel): ").strip()
    if not answer.isdigit() or not 1 <= int(answer) <= len(tasks):
        return None
    return tasks[int(answer) - 1].task_id


def _select_task(tasks: list[Task]) -> Optional[Task]:
    """
    Let the user pick one of `tasks` (fzf when installed, else a
    numbered prompt). Returns None when cancelled.
    """
    if len(tasks) == 1:
        return tasks[0]

    chosen = _pick_with_fzf(tasks) if shutil.which("fzf") else _pick_by_number(tasks)
    return next((t for t in tasks if t.task_id == chosen), None)


def _choose_task(store: TaskStore, task_id: Optional[str]) -> Task:
    """
    Resolve a task by id or unique id prefix.

    Without an id, let the user pick one of all tasks (visible first).
    """
    task_id = (task_id or "").strip()

    if task_id:
        matches = store.find(task_id)
        if not matches:
            raise ValidationError(f"Task not found: {task_id}")
        if len(matches) > 1:
            ids = ", ".join(t.task_id for t in matches)
            raise ValidationError(f"Ambiguous task id '{task_id}' (matches: {ids})")
        return matches[0]

    candidates = store.visible() + store.archived()
    if not candidates:
        raise ValidationError("No tasks found")

    task = _select_task(candidates)
    if task is None:
        raise ValidationError("Cancelled")
    return task


# ---------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings(args.store)
    setup_logging(
        console_level=logging.DEBUG if args.verbose else settings.log_level,
        log_file=settings.log_file,
    )

    func = getattr(args, "func", None)
    if func is None:
        parser.print_help()
        return 2

    logger.debug("command=%s store=%s", args.command, settings.store_path)

    try:
        now = _now(args)
        store = _open_store(settings, now)
        return func(args, store, now)
    except ValidationError as e:
        print(e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
