# src/duetask/engine/dates.py

"""
Due-date semantics.

Single source of truth for interpreting, comparing and rendering due
dates. A due date is stored as one string but has two meanings:

- date-only ("2024-03-05"): a whole calendar day, no time of day;
- date-time ("2024-03-05T14:30"): a specific local instant.

Strings are parsed into a tagged `DueDate` at the boundary. Anything that
cannot be parsed becomes an INVALID value that keeps the raw text; it is
never an exception, and every formatter renders it as "".

All functions take `now` explicitly. Datetimes are naive host-local.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Final, Optional, Union


# ---------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------

_DATE_ONLY_RE: Final = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_TIME_RE: Final = re.compile(r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")

_END_OF_DAY: Final = time(23, 59, 59, 999000)

_SOON_DAYS: Final[int] = 7


# ---------------------------------------------------------------------
# Tagged value
# ---------------------------------------------------------------------

class DueKind(str, Enum):
    DATE = "date"
    DATETIME = "datetime"
    INVALID = "invalid"


@dataclass(frozen=True, slots=True)
class DueDate:
    """
    A parsed due date.

    `raw` is the stored text and is what gets serialised back.
    `at` is the instant: local midnight for DATE, the moment itself for
    DATETIME, None for INVALID.
    """

    kind: DueKind
    raw: str
    at: Optional[datetime] = None

    @property
    def is_valid(self) -> bool:
        return self.kind is not DueKind.INVALID

    @property
    def has_time(self) -> bool:
        return self.kind is DueKind.DATETIME

    @property
    def day(self) -> Optional[date]:
        return self.at.date() if self.at is not None else None

    def __str__(self) -> str:
        return self.raw


DueLike = Union[DueDate, str]


# ---------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------

def parse_due(value: Optional[str]) -> Optional[DueDate]:
    """
    Parse a stored due-date string.

    Date-only strings become local midnight of that day (never UTC
    midnight). Other strings need an explicit HH:MM after the date and
    are read as ISO-8601 date-times; offset-aware values are moved into
    local time. Blank input means "no due date".
    """
    if value is None:
        return None

    s = value.strip()
    if not s:
        return None

    if _DATE_ONLY_RE.match(s):
        try:
            d = date.fromisoformat(s)
        except ValueError:
            return DueDate(DueKind.INVALID, s)
        return DueDate(DueKind.DATE, s, datetime.combine(d, time.min))

    if not _DATE_TIME_RE.match(s):
        return DueDate(DueKind.INVALID, s)

    try:
        at = datetime.fromisoformat(s)
    except ValueError:
        return DueDate(DueKind.INVALID, s)

    return DueDate(DueKind.DATETIME, s, _to_local_naive(at))


def coerce_due(value: Optional[DueLike]) -> Optional[DueDate]:
    """
    Normalise create/edit input.

    None or blank text clears the due date; there is no separate
    "left blank by accident" state.
    """
    if value is None or isinstance(value, DueDate):
        return value
    return parse_due(value)


def _to_local_naive(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone().replace(tzinfo=None)


# ---------------------------------------------------------------------
# Classification / comparison
# ---------------------------------------------------------------------

def has_time(value: Optional[DueLike]) -> bool:
    due = coerce_due(value)
    return due is not None and due.has_time


def is_overdue(value: Optional[DueLike], now: datetime) -> bool:
    """
    Date-time values are overdue once `now` is past the instant.
    Date-only values are overdue only after the whole day has elapsed.
    """
    due = coerce_due(value)
    if due is None or due.at is None:
        return False

    if due.kind is DueKind.DATE:
        return now > datetime.combine(due.at.date(), _END_OF_DAY)

    return now > due.at


def days_until(value: Optional[DueLike], now: datetime) -> Optional[int]:
    """
    Calendar-day distance from today to the due day (midnight to midnight).
    """
    due = coerce_due(value)
    if due is None or due.at is None:
        return None
    return (due.at.date() - now.date()).days


# ---------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------

def _hhmm(at: datetime) -> str:
    return at.strftime("%H:%M")


def _short_date(at: datetime) -> str:
    return f"{at:%b} {at.day}, {at.year}"


def relative_label(value: Optional[DueLike], now: datetime) -> str:
    """
    Human label relative to `now`.

    "Overdue", "Due today", "Due tomorrow", "Due in N days" (2..7),
    otherwise an absolute date. Time is appended only for date-time values.
    """
    due = coerce_due(value)
    if due is None or due.at is None:
        return ""

    if is_overdue(due, now):
        return "Overdue"

    diff = days_until(due, now)
    suffix = f" at {_hhmm(due.at)}" if due.has_time else ""

    if diff <= 0:
        return f"Due today{suffix}"
    if diff == 1:
        return f"Due tomorrow{suffix}"
    if diff <= _SOON_DAYS:
        return f"Due in {diff} days{suffix}"

    if due.has_time:
        return f"{_short_date(due.at)}, {_hhmm(due.at)}"
    return _short_date(due.at)


def exact_label(value: Optional[DueLike]) -> str:
    """Full weekday + date (+ time) for disambiguation."""
    due = coerce_due(value)
    if due is None or due.at is None:
        return ""

    label = f"{due.at:%a}, {_short_date(due.at)}"
    if due.has_time:
        label += f", {_hhmm(due.at)}"
    return label


def day_key(value: Optional[DueLike]) -> Optional[str]:
    """`YYYY-MM-DD` bucket of a due date, or None."""
    due = coerce_due(value)
    if due is None or due.at is None:
        return None
    return due.at.date().isoformat()


def to_editable_input(value: Optional[DueLike]) -> str:
    """
    Canonical `YYYY-MM-DDTHH:MM` form for an edit field.

    Date-only values become midnight of that day.
    """
    due = coerce_due(value)
    if due is None or due.at is None:
        return ""
    return due.at.strftime("%Y-%m-%dT%H:%M")


# ---------------------------------------------------------------------
# Timestamps (completedAt / archivedAt)
# ---------------------------------------------------------------------

def parse_timestamp(value: object) -> Optional[datetime]:
    """
    Read a stored timestamp into a local naive datetime.

    Accepts ISO strings (with or without offset) and datetime/date
    objects, which YAML produces for unquoted scalars. Returns None for
    anything else.
    """
    if isinstance(value, datetime):
        return _to_local_naive(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min)

    if isinstance(value, str) and value.strip():
        try:
            return _to_local_naive(datetime.fromisoformat(value.strip()))
        except ValueError:
            return None

    return None


def format_timestamp(dt: datetime) -> str:
    """Render a local timestamp as UTC ISO-8601 with milliseconds and `Z`."""
    utc = dt.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")
