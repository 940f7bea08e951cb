# src/weekplan/connectors/console_presenter.py

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from datetime import date
from typing import TextIO

from ..core.week_utils import (
    Clock,
    day_key,
    format_day_label,
    format_week_range,
    is_past,
    is_today,
    tasks_for_day,
    today,
    week_days,
)
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

SHORT_ID_LEN = 6


def short_id(task_id: str) -> str:
    return task_id[:SHORT_ID_LEN]


def format_task_line(task: Task) -> str:
    box = "[x]" if task.completed else "[ ]"
    line = f"  {box} {short_id(task.id)}  {task.text}"
    if task.is_carried:
        line += f"  (from {task.original_date})"
    if task.note:
        line += f"\n        note: {task.note}"
    return line


class ConsolePresenter:
    """Prints the week grid as plain text. Holds no task state of its own."""

    def __init__(self, *, app_name: str = "Week Plan", out: TextIO | None = None, clock: Clock = today) -> None:
        self.app_name = app_name
        self._out = out
        self._clock = clock

    def _print(self, text: str = "") -> None:
        print(text, file=self._out or sys.stdout, flush=True)

    def update_week_label(self, week_start: date) -> None:
        self._print(f"== {self.app_name}: {format_week_range(week_start)} ==")

    def render(self, week_start: date, tasks: Sequence[Task]) -> None:
        for day in week_days(week_start):
            key = day_key(day)
            header = format_day_label(day)
            if is_today(day, clock=self._clock):
                header += "  (today)"
            elif is_past(day, clock=self._clock):
                header += "  (past)"
            self._print(header)

            day_tasks = tasks_for_day(key, tasks)
            if not day_tasks:
                self._print("  -")
            for task in day_tasks:
                self._print(format_task_line(task))
        self._print()

    def show_sign_in(self) -> None:
        self._print(f"{self.app_name}: your calm weekly planner")
        self._print("You are signed out. Type /signin to continue.")

    def show_error(self, message: str, *, retry: bool) -> None:
        hint = " Type /retry to try again." if retry else ""
        self._print(f"[!] {message}{hint}")
