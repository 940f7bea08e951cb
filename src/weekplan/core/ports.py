# src/weekplan/core/ports.py

"""
Ports (interfaces) used by the core.

The controller and task store depend on Protocols instead of concrete
implementations. This keeps identity/storage/presentation swappable and makes
testing easier (tests feed synthetic snapshots through in-memory fakes).
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..tasks.task_models import Task

TaskRecord = dict[str, Any]
# Wire record: {"id", "text", "completed", "date", "originalDate", "note", "createdAt"}.

Unsubscribe = Callable[[], None]


@dataclass(slots=True, frozen=True)
class Identity:
    """Authenticated principal. `uid` scopes every storage key."""

    uid: str
    display_name: str | None = None


class IdentityProvider(Protocol):
    async def resolve_identity(self) -> Identity | None:
        """One-shot: resolves once at startup."""
        ...

    def current_identity(self) -> Identity | None: ...

    def on_identity_change(self, callback: Callable[[Identity | None], None]) -> Unsubscribe: ...

    async def sign_in(self) -> Identity:
        """Must only be invoked from a direct user action."""
        ...

    async def sign_out(self) -> None: ...


class RecordStore(Protocol):
    """
    Persistent key-value store keyed by (identity_id, task_id).

    subscribe() delivers the full current record set on every change, not a diff.
    """

    async def get(self, identity_id: str) -> list[TaskRecord]: ...

    async def set(self, identity_id: str, task_id: str, record: TaskRecord) -> None: ...

    async def update(self, identity_id: str, task_id: str, partial: TaskRecord) -> None: ...

    async def remove(self, identity_id: str, task_id: str) -> None: ...

    def subscribe(
            self,
            identity_id: str,
            callback: Callable[[list[TaskRecord]], None],
    ) -> Unsubscribe: ...


class Presenter(Protocol):
    """Pure consumer of the task collection (rendering lives outside the core)."""

    def render(self, week_start: date, tasks: Sequence[Task]) -> None: ...

    def update_week_label(self, week_start: date) -> None: ...

    def show_sign_in(self) -> None: ...

    def show_error(self, message: str, *, retry: bool) -> None: ...
