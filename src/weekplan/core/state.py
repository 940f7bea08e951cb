# src/weekplan/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .controller import ReconciliationController
from .ports import IdentityProvider, Presenter, RecordStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: Any

    identity: IdentityProvider
    records: RecordStore
    presenter: Presenter
    controller: ReconciliationController
