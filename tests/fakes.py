# tests/fakes.py

from __future__ import annotations

import contextlib
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date

from weekplan.core.errors import TaskNotFound, TransientStoreFailure
from weekplan.core.ports import Identity, TaskRecord, Unsubscribe
from weekplan.tasks.task_models import Task


class FakeRecordStore:
    """
    In-memory RecordStore.

    - pushes the full record set to subscribers after every write (like the real store)
    - `fail_update_ids` / `fail_get` inject TransientStoreFailure
    - `on_get` runs inside get(), before it returns (used to simulate early pushes)
    """

    def __init__(self, records: dict[str, list[TaskRecord]] | None = None) -> None:
        self.data: dict[str, dict[str, TaskRecord]] = {}
        for uid, recs in (records or {}).items():
            self.data[uid] = {r["id"]: dict(r) for r in recs}
        self.listeners: dict[str, list[Callable[[list[TaskRecord]], None]]] = {}
        self.fail_update_ids: set[str] = set()
        self.fail_remove_ids: set[str] = set()
        self.fail_get = False
        self.on_get: Callable[[], None] | None = None
        self.calls: list[tuple[str, str, str | None]] = []

    def snapshot(self, identity_id: str) -> list[TaskRecord]:
        return [dict(r) for r in self.data.get(identity_id, {}).values()]

    def listener_count(self, identity_id: str) -> int:
        return len(self.listeners.get(identity_id, []))

    def emit(self, identity_id: str) -> None:
        for cb in list(self.listeners.get(identity_id, [])):
            cb(self.snapshot(identity_id))

    async def get(self, identity_id: str) -> list[TaskRecord]:
        self.calls.append(("get", identity_id, None))
        if self.fail_get:
            raise TransientStoreFailure("get failed")
        if self.on_get is not None:
            self.on_get()
        return self.snapshot(identity_id)

    async def set(self, identity_id: str, task_id: str, record: TaskRecord) -> None:
        self.calls.append(("set", identity_id, task_id))
        self.data.setdefault(identity_id, {})[task_id] = dict(record)
        self.emit(identity_id)

    async def update(self, identity_id: str, task_id: str, partial: TaskRecord) -> None:
        self.calls.append(("update", identity_id, task_id))
        if task_id in self.fail_update_ids:
            raise TransientStoreFailure(f"update failed for {task_id}")
        bucket = self.data.get(identity_id, {})
        if task_id not in bucket:
            raise TaskNotFound(task_id)
        bucket[task_id].update(partial)
        self.emit(identity_id)

    async def remove(self, identity_id: str, task_id: str) -> None:
        self.calls.append(("remove", identity_id, task_id))
        if task_id in self.fail_remove_ids:
            raise TransientStoreFailure(f"remove failed for {task_id}")
        bucket = self.data.get(identity_id, {})
        if bucket.pop(task_id, None) is None:
            raise TaskNotFound(task_id)
        self.emit(identity_id)

    def subscribe(self, identity_id: str, callback: Callable[[list[TaskRecord]], None]) -> Unsubscribe:
        listeners = self.listeners.setdefault(identity_id, [])
        listeners.append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                listeners.remove(callback)

        return _unsubscribe

    def count(self, op: str) -> int:
        return sum(1 for c in self.calls if c[0] == op)


class FakeIdentityProvider:
    def __init__(self, identity: Identity | None = None, *, sign_in_as: Identity | None = None) -> None:
        self.identity = identity
        self.sign_in_as = sign_in_as or Identity(uid="u-signed-in", display_name="tester")
        self.sign_in_error: Exception | None = None
        self.sign_in_calls = 0
        self.listeners: list[Callable[[Identity | None], None]] = []

    async def resolve_identity(self) -> Identity | None:
        return self.identity

    def current_identity(self) -> Identity | None:
        return self.identity

    def on_identity_change(self, callback: Callable[[Identity | None], None]) -> Unsubscribe:
        self.listeners.append(callback)
        return lambda: self.listeners.remove(callback)

    async def sign_in(self) -> Identity:
        self.sign_in_calls += 1
        if self.sign_in_error is not None:
            raise self.sign_in_error
        self.set_identity(self.sign_in_as)
        return self.sign_in_as

    async def sign_out(self) -> None:
        self.set_identity(None)

    def set_identity(self, identity: Identity | None) -> None:
        self.identity = identity
        for cb in list(self.listeners):
            cb(identity)


@dataclass(slots=True)
class RecordingPresenter:
    """Presenter that records every call for assertions."""

    renders: list[tuple[date, list[Task]]] = field(default_factory=list)
    labels: list[date] = field(default_factory=list)
    errors: list[tuple[str, bool]] = field(default_factory=list)
    sign_in_shown: int = 0

    def render(self, week_start: date, tasks: Sequence[Task]) -> None:
        self.renders.append((week_start, list(tasks)))

    def update_week_label(self, week_start: date) -> None:
        self.labels.append(week_start)

    def show_sign_in(self) -> None:
        self.sign_in_shown += 1

    def show_error(self, message: str, *, retry: bool) -> None:
        self.errors.append((message, retry))

    @property
    def last_tasks(self) -> list[Task]:
        return self.renders[-1][1] if self.renders else []


def record(
    task_id: str,
    date_key: str,
    *,
    original: str | None = None,
    completed: bool = False,
    text: str | None = None,
    created_at: int = 0,
    note: str = "",
) -> TaskRecord:
    return {
        "id": task_id,
        "text": text or f"task {task_id}",
        "completed": completed,
        "date": date_key,
        "originalDate": original or date_key,
        "note": note,
        "createdAt": created_at,
    }


def task(task_id: str, date_key: str, **kw) -> Task:
    return Task.from_record(record(task_id, date_key, **kw))
