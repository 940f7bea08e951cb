# src/weekplan/core/controller.py

"""
Reconciliation controller.

Sequences the one-time bootstrap:
- resolve identity (no identity -> SIGNED_OUT, show the sign-in affordance),
- fetch the full collection once,
- run carry-forward,
- render, then arm the live subscription.

Once LIVE, every pushed snapshot replaces the held collection wholesale.
Snapshots that arrive before that are dropped, so the bootstrap result always
wins the first paint.

User intents go through the session's TaskStore only. Their effect becomes
visible when the store echoes the change back through the subscription.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import StrEnum
from typing import TypeVar

from ..tasks.carry_forward import carry_forward
from ..tasks.task_models import Task
from ..tasks.task_store import TaskStore
from .channel import SnapshotChannel
from .errors import PartialCarryForward, TaskNotFound, TransientStoreFailure, Unauthenticated
from .ports import Identity, IdentityProvider, Presenter, RecordStore, Unsubscribe
from .week_utils import Clock, today, week_start

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ControllerState(StrEnum):
    BOOTING = "booting"
    BOOTSTRAPPED = "bootstrapped"
    LIVE = "live"
    FAILED = "failed"  # bootstrap failed; waiting for an explicit retry
    SIGNED_OUT = "signed_out"


@dataclass(slots=True)
class Session:
    """Everything owned by one signed-in session. Dropped wholesale on sign-out."""

    identity: Identity
    store: TaskStore
    week_start: date
    tasks: list[Task] = field(default_factory=list)
    channel: SnapshotChannel | None = None
    unsubscribe: Unsubscribe | None = None
    pump: asyncio.Task[None] | None = None


class ReconciliationController:
    def __init__(
        self,
        identity: IdentityProvider,
        records: RecordStore,
        presenter: Presenter,
        *,
        clock: Clock = today,
    ) -> None:
        self._identity = identity
        self._records = records
        self._presenter = presenter
        self.clock = clock

        self.state = ControllerState.BOOTING
        self.session: Session | None = None
        self._unwatch_identity: Unsubscribe | None = None
        self._failure: str | None = None

    # ---- read-only views ----

    @property
    def ready(self) -> bool:
        """True while the held collection mirrors the store and intents are accepted."""
        return self.session is not None and self.state in (ControllerState.BOOTSTRAPPED, ControllerState.LIVE)

    @property
    def tasks(self) -> list[Task]:
        return list(self.session.tasks) if self.session else []

    @property
    def week_start(self) -> date | None:
        return self.session.week_start if self.session else None

    # ---- lifecycle ----

    async def start(self) -> ControllerState:
        self.state = ControllerState.BOOTING
        if self._unwatch_identity is None:
            self._unwatch_identity = self._identity.on_identity_change(self._on_identity_change)

        identity = await self._identity.resolve_identity()
        if identity is None:
            # Sign-in needs a direct user gesture; only prepare the affordance here.
            logger.info("No identity resolved; waiting for sign-in")
            self._enter_signed_out()
            return self.state

        return await self._bootstrap(identity)

    async def sign_in(self) -> ControllerState:
        """Call only from a direct user action."""
        if self.state is not ControllerState.SIGNED_OUT:
            logger.debug("sign_in ignored in state=%s", self.state)
            return self.state

        try:
            identity = await self._identity.sign_in()
        except Exception:
            logger.exception("Sign-in failed")
            self._presenter.show_error("Failed to sign in. Please try again.", retry=False)
            self._presenter.show_sign_in()
            return self.state

        self.state = ControllerState.BOOTING
        return await self._bootstrap(identity)

    async def sign_out(self) -> ControllerState:
        # The provider's change notification performs the actual teardown.
        await self._identity.sign_out()
        if self.state is not ControllerState.SIGNED_OUT:
            self._teardown()
            self._enter_signed_out()
        return self.state

    async def retry(self) -> ControllerState:
        if self.state is not ControllerState.FAILED:
            logger.debug("retry ignored in state=%s", self.state)
            return self.state

        identity = self._identity.current_identity()
        self._teardown()
        if identity is None:
            self._enter_signed_out()
            return self.state

        self.state = ControllerState.BOOTING
        return await self._bootstrap(identity)

    async def close(self) -> None:
        pump = self.session.pump if self.session else None
        self._teardown()
        if self._unwatch_identity is not None:
            self._unwatch_identity()
            self._unwatch_identity = None
        if pump is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await pump

    # ---- bootstrap ----

    async def _bootstrap(self, identity: Identity) -> ControllerState:
        now = self.clock()
        session = Session(
            identity=identity,
            store=TaskStore(self._records, self._identity.current_identity),
            week_start=week_start(now),
        )
        self.session = session
        self._failure = None
        self._presenter.update_week_label(session.week_start)
        logger.info("Bootstrapping tasks for uid=%s", identity.uid)

        try:
            tasks = await session.store.fetch_all()
            tasks = await carry_forward(now, tasks, session.store)
        except PartialCarryForward as e:
            logger.error("Bootstrap aborted: %s", e)
            return self._fail_bootstrap(session, "Some tasks could not be moved to today.")
        except TransientStoreFailure:
            logger.exception("Bootstrap aborted: failed to load tasks")
            return self._fail_bootstrap(session, "Failed to load tasks.")
        except Unauthenticated:
            logger.warning("Identity lost during bootstrap")
            if self.session is session:
                self._teardown()
                self._enter_signed_out()
            return self.state

        if self.session is not session:
            # Signed out (or restarted) while the bootstrap was suspended.
            logger.info("Bootstrap result discarded; session changed")
            return self.state

        session.tasks = tasks
        self._presenter.render(session.week_start, tasks)
        self.state = ControllerState.BOOTSTRAPPED

        self._arm_subscription(session)
        self.state = ControllerState.LIVE
        logger.info("Live: %d task(s) held for uid=%s", len(tasks), identity.uid)
        return self.state

    def _fail_bootstrap(self, session: Session, message: str) -> ControllerState:
        if self.session is not session:
            return self.state
        self.state = ControllerState.FAILED
        self._failure = message
        self._presenter.show_error(message, retry=True)
        return self.state

    def _arm_subscription(self, session: Session) -> None:
        channel = SnapshotChannel()
        session.channel = channel
        session.unsubscribe = session.store.subscribe(channel.push)
        session.pump = asyncio.create_task(self._pump(channel), name="weekplan-snapshots")

    async def _pump(self, channel: SnapshotChannel) -> None:
        async for snapshot in channel:
            try:
                self.apply_snapshot(snapshot)
            except Exception:
                # The next push carries the whole collection again.
                logger.exception("Applying snapshot failed (%d tasks)", len(snapshot))

    def apply_snapshot(self, tasks: Sequence[Task]) -> bool:
        """Replace the held collection with a pushed snapshot. Only honoured while LIVE."""
        if self.state is not ControllerState.LIVE or self.session is None:
            logger.debug("Snapshot dropped in state=%s (%d tasks)", self.state, len(tasks))
            return False
        self.session.tasks = list(tasks)
        self._presenter.render(self.session.week_start, self.session.tasks)
        return True

    # ---- identity ----

    def _on_identity_change(self, identity: Identity | None) -> None:
        if identity is not None or self.session is None:
            return
        if self.state in (
            ControllerState.BOOTING,
            ControllerState.BOOTSTRAPPED,
            ControllerState.LIVE,
            ControllerState.FAILED,
        ):
            logger.info("Identity lost; tearing down session")
            self._teardown()
            self._enter_signed_out()

    def _enter_signed_out(self) -> None:
        self.state = ControllerState.SIGNED_OUT
        self._presenter.show_sign_in()

    def _teardown(self) -> None:
        session = self.session
        self.session = None
        if session is None:
            return
        if session.unsubscribe is not None:
            session.unsubscribe()
            session.unsubscribe = None
        if session.channel is not None:
            session.channel.close()
        if session.pump is not None and not session.pump.done():
            session.pump.cancel()

    # ---- navigation (read-only) ----
    # Navigation and intents return None/False without touching the presenter's
    # grid unless the held collection mirrors the store.

    def navigate_week(self, direction: int) -> date | None:
        if direction not in (-1, 1):
            raise ValueError("direction must be -1 or +1")
        session = self._ready_session()
        if session is None:
            return None
        return self._show_week(session, session.week_start + timedelta(days=7 * direction))

    def go_to_today(self) -> date | None:
        session = self._ready_session()
        if session is None:
            return None
        return self._show_week(session, week_start(self.clock()))

    def redraw(self) -> date | None:
        session = self._ready_session()
        if session is None:
            return None
        return self._show_week(session, session.week_start)

    def _show_week(self, session: Session, start: date) -> date:
        session.week_start = start
        self._presenter.update_week_label(start)
        self._presenter.render(start, session.tasks)
        return start

    # ---- intents ----
    # No optimistic apply: the rendered collection changes when the store echoes the write.

    async def create_task(self, text: str, day_key: str) -> Task | None:
        _, task = await self._run_intent("Failed to add task.", lambda store: store.create(text, day_key))
        return task

    async def toggle_task(self, task_id: str, completed: bool) -> bool:
        ok, _ = await self._run_intent(
            "Failed to update task.", lambda store: store.set_completed(task_id, completed)
        )
        return ok

    async def set_note(self, task_id: str, note: str) -> bool:
        ok, _ = await self._run_intent("Failed to save note.", lambda store: store.set_note(task_id, note))
        return ok

    async def edit_text(self, task_id: str, text: str) -> bool:
        ok, _ = await self._run_intent("Failed to update task.", lambda store: store.patch(task_id, {"text": text}))
        return ok

    async def delete_task(self, task_id: str) -> bool:
        ok, _ = await self._run_intent("Failed to delete task.", lambda store: store.remove(task_id))
        return ok

    async def _run_intent(
        self, message: str, op: Callable[[TaskStore], Awaitable[T]]
    ) -> tuple[bool, T | None]:
        session = self._ready_session()
        if session is None:
            return False, None
        try:
            return True, await op(session.store)
        except (TransientStoreFailure, TaskNotFound) as e:
            logger.warning("%s %s", message, e)
            self._presenter.show_error(message, retry=False)
        except ValueError as e:
            logger.info("%s Rejected input: %s", message, e)
            self._presenter.show_error(f"{message} ({e})", retry=False)
        except Unauthenticated:
            # Usually the identity listener got here first.
            logger.warning("%s Identity lost during the write", message)
            if self.state is not ControllerState.SIGNED_OUT:
                self._teardown()
                self._enter_signed_out()
        return False, None

    def _ready_session(self) -> Session | None:
        """The live session, or None after re-showing whatever the user has to do first."""
        if self.ready:
            return self.session
        if self.state is ControllerState.FAILED:
            self._presenter.show_error(self._failure or "Failed to load tasks.", retry=True)
        elif self.state is ControllerState.BOOTING:
            logger.debug("Request ignored while booting")
        else:
            self._presenter.show_sign_in()
        return None
