# src/weekplan/core/errors.py

"""
Error taxonomy.

Store-side errors propagate untouched up to the reconciliation controller,
which is the only layer that turns them into user-visible messages.
"""

from __future__ import annotations

from collections.abc import Mapping


class WeekplanError(RuntimeError):
    """Base class for planner errors."""


class Unauthenticated(WeekplanError):
    """A store operation was attempted with no resolved identity."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


class TransientStoreFailure(WeekplanError):
    """Network/storage error on fetch, create, patch or delete."""


class TaskNotFound(WeekplanError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PartialCarryForward(WeekplanError):
    """
    One or more per-task patches failed during carry-forward.

    `failed_ids` keeps the order in which the tasks were selected;
    `errors` maps each failed id to the exception its patch raised.
    """

    def __init__(self, errors: Mapping[str, BaseException]) -> None:
        self.errors: dict[str, BaseException] = dict(errors)
        self.failed_ids: tuple[str, ...] = tuple(self.errors)
        super().__init__(
            f"Carry-forward failed for {len(self.failed_ids)} task(s): {', '.join(self.failed_ids)}"
        )
