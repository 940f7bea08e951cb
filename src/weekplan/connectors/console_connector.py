# src/weekplan/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

ReadLine = Callable[[str], Awaitable[str]]


async def _read_stdin(prompt: str) -> str:
    # input() blocks; keep the event loop free so pushed snapshots still render.
    return await asyncio.to_thread(input, prompt)


async def run_console_loop(state: AppState, *, read_line: ReadLine | None = None) -> None:
    read = read_line or _read_stdin
    logger.info("Console connector started.")
    print("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            user_input = (await read(">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply:
            print(reply)

    logger.info("Console connector finished.")
