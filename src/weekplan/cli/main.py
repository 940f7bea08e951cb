# src/weekplan/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, bootstraps the controller, then runs
the console REPL until /exit.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(state: AppState) -> None:
    controller = state.controller
    try:
        await controller.start()
        await run_console_loop(state)
    finally:
        await controller.close()


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(log_dir=settings.data_dir, level_name=settings.log_level)
    logger.info("Starting %s (log file %s)...", settings.app_name, log_file)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(_run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
