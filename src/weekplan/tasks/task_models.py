# src/weekplan/tasks/task_models.py

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any

from ..core.ports import TaskRecord

# Wire field names are shared with records already stored by other clients.
WIRE_FIELDS: dict[str, str] = {
    "id": "id",
    "text": "text",
    "completed": "completed",
    "date": "date",
    "original_date": "originalDate",
    "note": "note",
    "created_at": "createdAt",
}

# Fields a patch may touch. id / original_date / created_at are fixed at creation.
MUTABLE_FIELDS = frozenset({"text", "completed", "date", "note"})


def new_task_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(slots=True, frozen=True)
class Task:
    id: str
    text: str
    date: str
    original_date: str
    created_at: int
    completed: bool = False
    note: str = ""

    @property
    def is_carried(self) -> bool:
        """True once the task has been rolled forward from the day it was created on."""
        return self.date != self.original_date

    def to_record(self) -> TaskRecord:
        return {wire: getattr(self, attr) for attr, wire in WIRE_FIELDS.items()}

    @classmethod
    def from_record(cls, raw: dict[str, Any]) -> Task:
        date_key = str(raw.get("date") or "")
        return cls(
            id=str(raw.get("id") or ""),
            text=str(raw.get("text") or ""),
            date=date_key,
            original_date=str(raw.get("originalDate") or date_key),
            created_at=_as_int(raw.get("createdAt")),
            completed=bool(raw.get("completed", False)),
            note=str(raw.get("note") or ""),
        )


def _as_int(value: Any) -> int:
    # Other clients may have stored createdAt as text.
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0


def to_wire_fields(fields: dict[str, Any]) -> TaskRecord:
    """Translate attribute names of a partial update into wire names."""
    return {WIRE_FIELDS[name]: value for name, value in fields.items()}
