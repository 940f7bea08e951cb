# src/weekplan/logging_setup.py

"""
Logging for the interactive planner.

The console shares the terminal with the week grid, so it only shows what a
user should act on. The rotating file under the data dir keeps everything.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

LOG_FILE_NAME = "weekplan.log"

# Longest prefix wins. Anything unlisted is third-party and needs ERROR+.
_CONSOLE_FLOORS: dict[str, int] = {
    "weekplan.": logging.DEBUG,
    # one line per write; only problems belong on screen
    "weekplan.storage.": logging.WARNING,
    "py.warnings": logging.ERROR,
}


def console_level_for(level_name: str | None) -> int:
    """Map a configured level name to the console level. Never chattier than WARNING."""
    level = logging.getLevelName(str(level_name or "INFO").strip().upper())
    if not isinstance(level, int):
        level = logging.INFO
    return max(level, logging.WARNING)


class _ConsoleNoiseFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        floor = logging.ERROR
        matched = ""
        for prefix, level in _CONSOLE_FLOORS.items():
            if record.name.startswith(prefix) and len(prefix) > len(matched):
                floor, matched = level, prefix
        return record.levelno >= floor


def setup_logging(
    *,
    log_dir: str | Path = ".local/weekplan",
    level_name: str | None = "INFO",
    file_level: int = logging.DEBUG,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> Path:
    """
    Install a filtered stderr handler and a rotating file handler on the root logger.

    Call once, before the first log line. Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level_for(level_name))
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    return log_file
