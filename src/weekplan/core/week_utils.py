# src/weekplan/core/week_utils.py

"""
Calendar helpers.

Everything here is pure date arithmetic on local calendar days. The only
source of "now" is `today()`; callers that classify dates accept a `clock`
so tests can pin the current day.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from datetime import date, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..tasks.task_models import Task

Clock = Callable[[], date]

DAY_KEY_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def today() -> date:
    """Current local date (midnight has no meaning for `date`, so no normalization needed)."""
    return date.today()


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        # Aware datetimes are moved to local time so the calendar fields match the user's day.
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def week_start(value: date | datetime) -> date:
    """
    Monday of the week containing `value`.

    Sunday belongs to the week that started six days earlier.
    """
    d = _as_date(value)
    return d - timedelta(days=d.weekday())


def week_end(start: date | datetime) -> date:
    return week_start(start) + timedelta(days=6)


def week_days(start: date | datetime) -> list[date]:
    first = _as_date(start)
    return [first + timedelta(days=i) for i in range(7)]


def day_key(value: date | datetime) -> str:
    """Canonical YYYY-MM-DD key; fixed width, so string order is chronological order."""
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_day_key(key: str) -> date:
    m = DAY_KEY_RE.match(key or "")
    if not m:
        raise ValueError(f"Invalid day key: {key!r} (expected YYYY-MM-DD)")
    year, month, day = (int(g) for g in m.groups())
    return date(year, month, day)


def is_today(value: date | datetime, *, clock: Clock = today) -> bool:
    return day_key(value) == day_key(clock())


def is_past(value: date | datetime, *, clock: Clock = today) -> bool:
    return _as_date(value) < clock()


def format_day_label(value: date | datetime) -> str:
    d = _as_date(value)
    return f"{_WEEKDAYS[d.weekday()]} {d.day}"


def format_week_range(start: date | datetime) -> str:
    """E.g. "Jun 10 - 16, 2024" or "Jul 29 - Aug 4, 2024"."""
    first = _as_date(start)
    last = first + timedelta(days=6)
    start_month = _MONTHS[first.month - 1]
    end_month = _MONTHS[last.month - 1]

    if start_month == end_month:
        return f"{start_month} {first.day} - {last.day}, {first.year}"
    return f"{start_month} {first.day} - {end_month} {last.day}, {first.year}"


def tasks_for_day(key: str, tasks: Iterable[Task]) -> list[Task]:
    """Tasks scheduled on `key`, oldest first."""
    return sorted(
        (t for t in tasks if t.date == key),
        key=lambda t: (t.created_at, t.id),
    )
