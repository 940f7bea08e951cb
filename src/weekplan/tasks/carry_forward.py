# src/weekplan/tasks/carry_forward.py

"""
Carry-forward engine.

Incomplete tasks scheduled before today are re-dated to today. Only the `date`
field moves: id, text, original_date and created_at stay as they were, so a
carried task is recognizable by `date != original_date`.

Running it twice with the same "now" is a no-op the second time: every
selected task already sits on today's key and `<` excludes it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime

from ..core.errors import PartialCarryForward, Unauthenticated
from ..core.week_utils import day_key
from .task_models import Task
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def select_carry_over(today_key: str, tasks: Iterable[Task]) -> list[Task]:
    # Fixed-width YYYY-MM-DD keys compare chronologically as plain strings.
    return [t for t in tasks if not t.completed and t.date < today_key]


def roll_forward(today_key: str, tasks: Iterable[Task]) -> list[Task]:
    """Pure half of the engine: the collection as it looks once every patch has landed."""
    out: list[Task] = []
    for t in tasks:
        if not t.completed and t.date < today_key:
            out.append(replace(t, date=today_key))
        else:
            out.append(t)
    return out


async def carry_forward(now: date | datetime, tasks: Sequence[Task], store: TaskStore) -> list[Task]:
    """
    Patch every incomplete past task to today and return the updated collection.

    Patches are independent and run concurrently; all of them settle before this
    returns. If any fail, PartialCarryForward lists the failed ids instead of
    returning a collection that disagrees with the store.
    """
    today_key = day_key(now)
    due = select_carry_over(today_key, tasks)
    if not due:
        return list(tasks)

    results = await asyncio.gather(
        *(store.set_date(t.id, today_key) for t in due),
        return_exceptions=True,
    )

    errors: dict[str, BaseException] = {}
    for task, result in zip(due, results):
        if not isinstance(result, BaseException):
            continue
        if not isinstance(result, Exception):
            # CancelledError and friends are not patch failures.
            raise result
        if isinstance(result, Unauthenticated):
            raise result
        errors[task.id] = result

    if errors:
        logger.warning(
            "Carry-forward incomplete: %d of %d patch(es) failed ids=%s",
            len(errors),
            len(due),
            list(errors),
        )
        raise PartialCarryForward(errors)

    logger.info("Carried %d task(s) forward to %s", len(due), today_key)
    return roll_forward(today_key, tasks)
