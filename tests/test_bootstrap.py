# tests/test_bootstrap.py

from __future__ import annotations

import pytest

from weekplan.auth.local_identity import LocalIdentityProvider
from weekplan.cli.bootstrap import create_initial_state
from weekplan.core.controller import ControllerState
from weekplan.storage.sqlite_store import SqliteRecordStore


def test_create_initial_state_wires_local_adapters(settings, clock) -> None:
    settings.data_dir = settings.data_dir / "nested"
    settings.tasks_db_path = settings.data_dir / "db" / "tasks.sqlite3"

    state = create_initial_state(settings=settings, clock=clock)

    assert isinstance(state.identity, LocalIdentityProvider)
    assert isinstance(state.records, SqliteRecordStore)
    assert state.controller.clock is clock
    assert settings.tasks_db_path.parent.is_dir()


@pytest.mark.asyncio
async def test_fresh_install_starts_signed_out_then_signs_in(settings, clock, capsys) -> None:
    state = create_initial_state(settings=settings, clock=clock)

    assert await state.controller.start() is ControllerState.SIGNED_OUT
    assert "/signin" in capsys.readouterr().out

    assert await state.controller.sign_in() is ControllerState.LIVE
    assert "Jun 10 - 16, 2024" in capsys.readouterr().out
    await state.controller.close()
