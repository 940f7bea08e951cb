# src/weekplan/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..core.errors import Unauthenticated
from ..core.ports import Identity, RecordStore, TaskRecord, Unsubscribe
from ..core.week_utils import parse_day_key
from .task_models import MUTABLE_FIELDS, Task, new_task_id, now_ms, to_wire_fields

logger = logging.getLogger(__name__)


class TaskStore:
    """
    Identity-scoped CRUD + subscription facade over a RecordStore.

    - every call resolves the current identity first and raises Unauthenticated if there is none
    - record store errors propagate untouched
    - no cached state: reads always go to the record store
    """

    def __init__(
        self,
        records: RecordStore,
        current_identity: Callable[[], Identity | None],
        *,
        id_factory: Callable[[], str] = new_task_id,
        clock_ms: Callable[[], int] = now_ms,
    ) -> None:
        self._records = records
        self._current_identity = current_identity
        self._id_factory = id_factory
        self._clock_ms = clock_ms

    def _identity_id(self) -> str:
        identity = self._current_identity()
        if identity is None:
            raise Unauthenticated()
        return identity.uid

    # ---- writes ----

    async def create(self, text: str, date: str) -> Task:
        text = (text or "").strip()
        if not text:
            raise ValueError("text is required")
        parse_day_key(date)

        identity_id = self._identity_id()
        task = Task(
            id=self._id_factory(),
            text=text,
            date=date,
            original_date=date,
            created_at=self._clock_ms(),
        )
        await self._records.set(identity_id, task.id, task.to_record())
        logger.debug("Task created id=%s date=%s", task.id, date)
        return task

    async def patch(self, task_id: str, fields: Mapping[str, Any]) -> None:
        """
        Partial update by attribute name (date, completed, note, text).

        Date rollover, completion toggles and note edits all route through here.
        """
        if not fields:
            return
        unknown = set(fields) - MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot patch field(s): {', '.join(sorted(unknown))}")
        if "date" in fields:
            parse_day_key(fields["date"])
        if "text" in fields:
            text = str(fields["text"] or "").strip()
            if not text:
                raise ValueError("text is required")
            fields = {**fields, "text": text}

        identity_id = self._identity_id()
        await self._records.update(identity_id, task_id, to_wire_fields(dict(fields)))
        logger.debug("Task patched id=%s fields=%s", task_id, sorted(fields))

    async def set_date(self, task_id: str, date: str) -> None:
        await self.patch(task_id, {"date": date})

    async def set_completed(self, task_id: str, completed: bool) -> None:
        await self.patch(task_id, {"completed": bool(completed)})

    async def set_note(self, task_id: str, note: str) -> None:
        await self.patch(task_id, {"note": (note or "").strip()})

    async def remove(self, task_id: str) -> None:
        identity_id = self._identity_id()
        await self._records.remove(identity_id, task_id)
        logger.debug("Task removed id=%s", task_id)

    # ---- reads ----

    async def fetch_all(self) -> list[Task]:
        identity_id = self._identity_id()
        records = await self._records.get(identity_id)
        return _to_tasks(records)

    def subscribe(self, callback: Callable[[list[Task]], None]) -> Unsubscribe:
        """Push-based: `callback` receives the full current collection on every change."""
        identity_id = self._identity_id()

        def _on_records(records: list[TaskRecord]) -> None:
            callback(_to_tasks(records))

        return self._records.subscribe(identity_id, _on_records)


def _to_tasks(records: list[TaskRecord]) -> list[Task]:
    return [Task.from_record(r) for r in records]
