# src/duetask/engine/render.py

"""
Rendering helpers for CLI output.

This module is responsible for:
- task lists (list / archived),
- the structured task detail view (show),
- the month calendar (calendar),
- the counts summary (stats).

It is presentation-only: it never mutates tasks or touches storage.
"""

from __future__ import annotations

import re
import shutil
import sys
import textwrap
from datetime import datetime
from typing import Iterable, Optional

from .calview import CalendarCell, DayDue, MonthAnchor, month_cells
from .dates import exact_label, is_overdue, relative_label, to_editable_input
from .model import Counts, Task
from .retention import remaining_label


# ---------------------------------------------------------------------
# ANSI / terminal helpers
# ---------------------------------------------------------------------

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[90m"
_RED = "\033[31m"
_GREEN = "\033[32m"
_CYAN = "\033[36m"

_WEEKDAYS = ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa")


def _supports_color() -> bool:
    """Return True if stdout is a TTY."""
    return sys.stdout.isatty()


def _visible_len(s: str) -> int:
    """Return string length without ANSI colour escapes."""
    return len(_ANSI_RE.sub("", s))


def _paint(s: str, code: str, color: bool) -> str:
    if color and _supports_color():
        return f"{code}{s}{_RESET}"
    return s


# ---------------------------------------------------------------------
# Task lines
# ---------------------------------------------------------------------

def format_task_line(task: Task, now: datetime, *, color: bool = True) -> str:
    """
    One list line:

      [x] Text  (Due tomorrow at 09:00)  id: 3f9c2a1b
    """
    box = "[x]" if task.completed else "[ ]"
    text = _paint(task.text, _DIM, color) if task.completed else task.text

    parts = [f"{box} {text}"]

    label = relative_label(task.due, now)
    if label:
        late = not task.completed and is_overdue(task.due, now)
        parts.append(f"({_paint(label, _RED, color and late)})")

    parts.append(_paint(f"id: {task.task_id}", _DIM, color))
    return "  ".join(parts)


def render_task_list(
    tasks: Iterable[Task],
    now: datetime,
    *,
    counts: Optional[Counts] = None,
    color: bool = True,
) -> None:
    if counts is not None:
        header = f"{counts.remaining} remaining"
        if counts.overdue:
            header += f", {_paint(f'{counts.overdue} overdue', _RED, color)}"
        print(header)

    rows = list(tasks)
    if not rows:
        print("No tasks.")
        return

    for task in rows:
        print(format_task_line(task, now, color=color))


def render_archive(tasks: Iterable[Task], now: datetime, *, color: bool = True) -> None:
    rows = list(tasks)
    if not rows:
        print("Archive is empty.")
        return

    for task in rows:
        keep = remaining_label(task, now)
        print(f"- {task.text}  ({keep})  {_paint(f'id: {task.task_id}', _DIM, color)}")


def render_counts(counts: Counts) -> None:
    print(f"total:     {counts.total}")
    print(f"completed: {counts.completed}")
    print(f"remaining: {counts.remaining}")
    print(f"overdue:   {counts.overdue}")


# ---------------------------------------------------------------------
# Task detail view (show)
# ---------------------------------------------------------------------

def render_task_detail(task: Task, now: datetime, *, color: bool = True) -> None:
    """
    Render a structured task detail view.

    Width is capped at 80 characters.
    """
    width = min(80, shutil.get_terminal_size(fallback=(80, 24)).columns)
    inner_w = max(20, width - 4)  # borders + padding

    def box_rule(ch: str = "-") -> None:
        print(f"+{ch * (width - 2)}+")

    def box_line(content: str = "") -> None:
        raw = content
        pad = inner_w - _visible_len(raw)
        if pad > 0:
            raw = raw + (" " * pad)
        print(f"| {raw} |")

    def fmt_ts(ts: Optional[datetime]) -> str:
        return ts.strftime("%Y-%m-%d %H:%M") if ts else "–"

    status = "done" if task.completed else "open"
    if task.is_archived:
        status = "archived"

    print()
    box_rule("=")
    for ln in textwrap.wrap(task.text, width=inner_w, break_long_words=False) or [""]:
        box_line(ln)
    box_rule("=")

    box_line(f"id: {task.task_id}")
    box_line(f"status: {_paint(status, _GREEN if task.completed else _CYAN, color)}")

    if task.due is not None:
        box_rule()
        if task.due.is_valid:
            box_line(f"due: {exact_label(task.due)}")
            box_line(f"     {relative_label(task.due, now)}")
            box_line(f"edit as: {to_editable_input(task.due)}")
        else:
            box_line(f"due: {_paint('unreadable', _RED, color)} ({task.due.raw})")

    if task.completed:
        box_rule()
        box_line(f"completed: {fmt_ts(task.completed_at)}")
        if task.is_archived:
            box_line(f"archived:  {fmt_ts(task.archived_at)}")
            box_line(remaining_label(task, now))

    box_rule("=")
    print()


# ---------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------

def _cell_text(cell: Optional[CalendarCell], color: bool) -> str:
    if cell is None:
        return "    "

    day = f"{cell.day:>2}"
    badge = f"{cell.count}" if cell.count else " "
    if cell.count > 9:
        badge = "+"

    if cell.is_today:
        day = _paint(day, _BOLD, color)
    elif cell.is_past:
        day = _paint(day, _DIM, color)

    if cell.count:
        badge = _paint(badge, _GREEN, color)

    return f"{day}{badge} "


def day_title(entry: DayDue) -> str:
    """Tooltip-style summary of a day's due tasks."""
    noun = "task" if entry.count == 1 else "tasks"
    return "\n".join([f"{entry.count} {noun} due:", *entry.texts])


def render_calendar(
    anchor: MonthAnchor,
    index: dict[str, DayDue],
    now: datetime,
    *,
    color: bool = True,
) -> None:
    """
    Month grid with a due-count badge next to each day, followed by the
    due tasks of that month.
    """
    weeks = month_cells(anchor, index, now)

    print(anchor.title.center(28).rstrip())
    print("".join(f"{d:<4}" for d in _WEEKDAYS).rstrip())

    for week in weeks:
        print("".join(_cell_text(cell, color) for cell in week).rstrip())

    days = [cell for week in weeks for cell in week if cell is not None and cell.due]
    if not days:
        return

    print()
    for cell in days:
        lines = day_title(cell.due).splitlines()
        print(f"{cell.key}: {lines[0]}")
        for text in lines[1:]:
            print(f"  - {text}")
