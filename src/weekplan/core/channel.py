# src/weekplan/core/channel.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..tasks.task_models import Task

logger = logging.getLogger(__name__)


class SnapshotChannel:
    """
    Async stream of full-collection snapshots.

    `push` is the callback handed to a push-based subscription; consumers
    iterate with `async for`. Snapshots are whole collections, so when several
    are queued only the newest one is yielded (last write wins).
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[list[Task] | None] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, snapshot: Sequence[Task]) -> None:
        if self._closed:
            logger.debug("Snapshot pushed into closed channel; dropped (%d tasks)", len(snapshot))
            return
        self._queue.put_nowait(list(snapshot))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    def __aiter__(self) -> SnapshotChannel:
        return self

    async def __anext__(self) -> list[Task]:
        item = await self._queue.get()
        # Collapse a backlog down to the newest snapshot.
        while item is not None and not self._queue.empty():
            item = self._queue.get_nowait()
        if item is None:
            raise StopAsyncIteration
        return item
