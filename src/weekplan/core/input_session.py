# src/weekplan/core/input_session.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

SubmitFn = Callable[[str, str], Awaitable[Any]]


class SubmitLatch:
    """Once-only gate: the first `try_commit_once()` wins until `reset()`."""

    __slots__ = ("_committed",)

    def __init__(self) -> None:
        self._committed = False

    @property
    def committed(self) -> bool:
        return self._committed

    def try_commit_once(self) -> bool:
        if self._committed:
            return False
        self._committed = True
        return True

    def reset(self) -> None:
        self._committed = False


class TaskInputSession:
    """
    One "add task" input on a day panel.

    Both an explicit confirm and an implicit blur can commit the typed text.
    They may overlap (confirm awaits the store, then the input loses focus),
    so the latch is claimed before the first await and at most one create
    is issued per session.
    """

    def __init__(self, day_key: str, submit: SubmitFn) -> None:
        self.day_key = day_key
        self._submit = submit
        self._latch = SubmitLatch()
        self.closed = False

    async def confirm(self, text: str) -> bool:
        return await self._commit(text, trigger="confirm")

    async def blur(self, text: str) -> bool:
        return await self._commit(text, trigger="blur")

    def cancel(self) -> None:
        """Escape: discard the input without creating anything."""
        self._latch.try_commit_once()
        self.closed = True

    async def _commit(self, text: str, *, trigger: str) -> bool:
        text = (text or "").strip()
        if not text:
            self.closed = True
            return False
        if not self._latch.try_commit_once():
            logger.debug("Input session for %s already committed; %s ignored", self.day_key, trigger)
            return False
        try:
            await self._submit(text, self.day_key)
        finally:
            self.closed = True
        return True
