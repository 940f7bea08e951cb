# src/weekplan/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (identity/records/presenter/controller).
"""

from __future__ import annotations

import logging

from ..auth.local_identity import LocalIdentityProvider
from ..config import get_settings
from ..connectors.console_presenter import ConsolePresenter
from ..core.controller import ReconciliationController
from ..core.state import AppState
from ..core.week_utils import Clock, today
from ..storage.sqlite_store import SqliteRecordStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.identity_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, clock: Clock = today) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    identity = LocalIdentityProvider(settings.identity_path, user_name=settings.user_name)
    records = SqliteRecordStore(settings.tasks_db_path)
    presenter = ConsolePresenter(app_name=settings.app_name, clock=clock)
    controller = ReconciliationController(identity, records, presenter, clock=clock)

    return AppState(
        settings=settings,
        identity=identity,
        records=records,
        presenter=presenter,
        controller=controller,
    )
