# src/weekplan/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import timedelta

from ..core.input_session import TaskInputSession
from ..core.state import AppState
from ..core.week_utils import day_key, parse_day_key
from ..tasks.task_models import Task

CommandHandler = Callable[[AppState, list[str]], Awaitable[str | None]]

logger = logging.getLogger(__name__)

_DAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


class CommandError(ValueError):
    """Bad command arguments; the message is shown to the user as-is."""


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string, or None when there is nothing to print.
        """
        if not line.startswith("/"):
            return "Commands start with '/'. Use /help to list available commands."

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return await handler(state, args)
        except CommandError as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- argument helpers ----


def resolve_task(tasks: Sequence[Task], ref: str) -> Task:
    """Find a task by full id or unique id prefix."""
    ref = ref.strip()
    if not ref:
        raise CommandError("Task id is required.")
    matches = [t for t in tasks if t.id.startswith(ref)]
    exact = [t for t in matches if t.id == ref]
    if exact:
        return exact[0]
    if not matches:
        raise CommandError(f"No task matches id '{ref}'.")
    if len(matches) > 1:
        raise CommandError(f"Id '{ref}' is ambiguous ({len(matches)} tasks). Type more characters.")
    return matches[0]


def resolve_day(state: AppState, ref: str) -> str:
    """mon..sun of the shown week, 'today', or a YYYY-MM-DD key."""
    ctrl = state.controller
    ref = ref.strip().lower()
    if ref == "today":
        return day_key(ctrl.clock())
    if ref[:3] in _DAY_NAMES and ref.isalpha():
        start = ctrl.week_start
        if start is None:
            raise CommandError("No week is shown. Sign in first.")
        return day_key(start + timedelta(days=_DAY_NAMES.index(ref[:3])))
    try:
        return day_key(parse_day_key(ref))
    except ValueError:
        raise CommandError(f"Unknown day '{ref}'. Use mon..sun, today or YYYY-MM-DD.") from None


def _task_id(state: AppState, ref: str) -> str:
    ctrl = state.controller
    if not ctrl.ready:
        # Nothing to match against; the intent itself reports why it cannot run.
        return ref
    return resolve_task(ctrl.tasks, ref).id


def _require_args(args: list[str], n: int, usage: str) -> None:
    if len(args) < n:
        raise CommandError(f"Usage: {usage}")


# ---- handlers ----


async def cmd_help(state: AppState, args: list[str]) -> str | None:
    return registry.build_help()


async def cmd_week(state: AppState, args: list[str]) -> str | None:
    state.controller.redraw()
    return None


async def cmd_today(state: AppState, args: list[str]) -> str | None:
    state.controller.go_to_today()
    return None


async def cmd_prev(state: AppState, args: list[str]) -> str | None:
    state.controller.navigate_week(-1)
    return None


async def cmd_next(state: AppState, args: list[str]) -> str | None:
    state.controller.navigate_week(1)
    return None


async def cmd_add(state: AppState, args: list[str]) -> str | None:
    _require_args(args, 2, "/add <day> <text>")
    key = resolve_day(state, args[0]) if state.controller.ready else args[0]
    session = TaskInputSession(key, state.controller.create_task)
    if not await session.confirm(" ".join(args[1:])):
        return "Nothing to add."
    return None


async def cmd_done(state: AppState, args: list[str]) -> str | None:
    _require_args(args, 1, "/done <id>")
    await state.controller.toggle_task(_task_id(state, args[0]), True)
    return None


async def cmd_undo(state: AppState, args: list[str]) -> str | None:
    _require_args(args, 1, "/undo <id>")
    await state.controller.toggle_task(_task_id(state, args[0]), False)
    return None


async def cmd_note(state: AppState, args: list[str]) -> str | None:
    _require_args(args, 1, "/note <id> [text]")
    await state.controller.set_note(_task_id(state, args[0]), " ".join(args[1:]))
    return None


async def cmd_edit(state: AppState, args: list[str]) -> str | None:
    _require_args(args, 2, "/edit <id> <text>")
    await state.controller.edit_text(_task_id(state, args[0]), " ".join(args[1:]))
    return None


async def cmd_delete(state: AppState, args: list[str]) -> str | None:
    _require_args(args, 1, "/del <id>")
    await state.controller.delete_task(_task_id(state, args[0]))
    return None


async def cmd_signin(state: AppState, args: list[str]) -> str | None:
    new_state = await state.controller.sign_in()
    return f"State: {new_state}"


async def cmd_signout(state: AppState, args: list[str]) -> str | None:
    await state.controller.sign_out()
    return None


async def cmd_retry(state: AppState, args: list[str]) -> str | None:
    new_state = await state.controller.retry()
    return f"State: {new_state}"


registry.register("help", cmd_help, "show this help", aliases=["h", "?"])
registry.register("week", cmd_week, "redraw the shown week")
registry.register("today", cmd_today, "jump to the current week")
registry.register("prev", cmd_prev, "show the previous week", aliases=["p"])
registry.register("next", cmd_next, "show the next week", aliases=["n"])
registry.register("add", cmd_add, "add a task: /add <mon..sun|today|YYYY-MM-DD> <text>", aliases=["a"])
registry.register("done", cmd_done, "mark a task completed: /done <id>", aliases=["d"])
registry.register("undo", cmd_undo, "mark a task not completed: /undo <id>")
registry.register("note", cmd_note, "set or clear a note: /note <id> [text]")
registry.register("edit", cmd_edit, "change a task's text: /edit <id> <text>")
registry.register("del", cmd_delete, "delete a task: /del <id>", aliases=["rm"])
registry.register("signin", cmd_signin, "sign in")
registry.register("signout", cmd_signout, "sign out")
registry.register("retry", cmd_retry, "retry loading after a failure")
