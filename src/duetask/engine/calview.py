# src/duetask/engine/calview.py

"""
Month calendar aggregation.

Builds the month grid (Sunday-first weeks of 7 cells) and indexes the
visible, incomplete tasks by the day they are due. Months use a
zero-based index (0 = January) throughout this module.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from .dates import day_key
from .model import Task

Week = list[Optional[int]]


# ---------------------------------------------------------------------
# Grid
# ---------------------------------------------------------------------

def month_grid(year: int, month_index: int) -> list[Week]:
    """
    Weeks of the given month.

    The first week is left-padded with None up to the weekday of the 1st
    (Sunday = column 0) and the last week is right-padded to 7 cells.
    Days of neighbouring months never appear.
    """
    first_weekday, days_in_month = calendar.monthrange(year, month_index + 1)
    lead = (first_weekday + 1) % 7  # Monday=0 -> Sunday-first column

    weeks: list[Week] = []
    week: Week = [None] * lead

    for day in range(1, days_in_month + 1):
        week.append(day)
        if len(week) == 7:
            weeks.append(week)
            week = []

    if week:
        week.extend([None] * (7 - len(week)))
        weeks.append(week)

    return weeks


# ---------------------------------------------------------------------
# Due index
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class DayDue:
    count: int
    texts: tuple[str, ...]


def due_index(tasks: Iterable[Task]) -> dict[str, DayDue]:
    """
    Map day key -> due tasks for visible, incomplete tasks.

    Completed tasks do not count toward a day's badge.
    """
    buckets: dict[str, list[str]] = {}
    for task in tasks:
        if task.archived_at is not None or task.completed:
            continue
        key = day_key(task.due)
        if key is None:
            continue
        buckets.setdefault(key, []).append(task.text)

    return {key: DayDue(count=len(texts), texts=tuple(texts)) for key, texts in buckets.items()}


# ---------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class MonthAnchor:
    """
    The month currently displayed.
    """

    year: int
    month_index: int

    @classmethod
    def containing(cls, moment: date) -> "MonthAnchor":
        return cls(year=moment.year, month_index=moment.month - 1)

    def shift(self, delta: int) -> "MonthAnchor":
        """Move by `delta` months in either direction, without bounds."""
        total = self.year * 12 + self.month_index + delta
        return MonthAnchor(year=total // 12, month_index=total % 12)

    @property
    def title(self) -> str:
        return f"{calendar.month_name[self.month_index + 1]} {self.year}"

    def key_for(self, day: int) -> str:
        return f"{self.year:04d}-{self.month_index + 1:02d}-{day:02d}"


# ---------------------------------------------------------------------
# Decorated cells
# ---------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class CalendarCell:
    day: int
    key: str
    due: Optional[DayDue]
    is_today: bool
    is_past: bool

    @property
    def count(self) -> int:
        return self.due.count if self.due else 0


def month_cells(
    anchor: MonthAnchor,
    index: dict[str, DayDue],
    now: datetime,
) -> list[list[Optional[CalendarCell]]]:
    """
    The month grid with each day resolved against `index` and today.
    """
    today = now.date()
    out: list[list[Optional[CalendarCell]]] = []

    for week in month_grid(anchor.year, anchor.month_index):
        row: list[Optional[CalendarCell]] = []
        for day in week:
            if day is None:
                row.append(None)
                continue
            cell_date = date(anchor.year, anchor.month_index + 1, day)
            key = anchor.key_for(day)
            row.append(
                CalendarCell(
                    day=day,
                    key=key,
                    due=index.get(key),
                    is_today=cell_date == today,
                    is_past=cell_date < today,
                )
            )
        out.append(row)

    return out
