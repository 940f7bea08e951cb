# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from weekplan.core.controller import ReconciliationController
from weekplan.core.ports import Identity
from weekplan.core.state import AppState

from .fakes import FakeIdentityProvider, FakeRecordStore, RecordingPresenter

# Wednesday
TODAY = date(2024, 6, 12)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="Week Plan",
        log_level="INFO",
        user_name="tester",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        identity_path=tmp_path / "identity.json",
    )


@pytest.fixture()
def clock():
    return lambda: TODAY


@pytest.fixture()
def identity() -> Identity:
    return Identity(uid="u1", display_name="tester")


@pytest.fixture()
def provider(identity: Identity) -> FakeIdentityProvider:
    return FakeIdentityProvider(identity)


@pytest.fixture()
def records() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture()
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture()
def controller(provider, records, presenter, clock) -> ReconciliationController:
    return ReconciliationController(provider, records, presenter, clock=clock)


@pytest.fixture()
def state(settings, provider, records, presenter, controller) -> AppState:
    """AppState wired with deterministic fakes."""
    return AppState(
        settings=settings,
        identity=provider,
        records=records,
        presenter=presenter,
        controller=controller,
    )
