# src/weekplan/auth/local_identity.py

"""
File-backed identity provider for local use.

The signed-in identity is persisted as a small JSON file so a restart keeps
the session. Signing out removes the file and notifies listeners.
"""

from __future__ import annotations

import asyncio
import contextlib
import getpass
import hashlib
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path

from ..core.ports import Identity, Unsubscribe

logger = logging.getLogger(__name__)

IdentityCallback = Callable[[Identity | None], None]


def uid_for(user_name: str) -> str:
    """Stable opaque uid derived from the local user name."""
    return hashlib.sha256(user_name.strip().lower().encode("utf-8")).hexdigest()[:28]


class LocalIdentityProvider:
    def __init__(self, identity_path: str | Path, *, user_name: str | None = None) -> None:
        self._path = Path(identity_path)
        self._user_name = user_name
        self._current: Identity | None = None
        self._resolved = False
        self._listeners: list[IdentityCallback] = []

    def current_identity(self) -> Identity | None:
        return self._current

    async def resolve_identity(self) -> Identity | None:
        if not self._resolved:
            self._current = await asyncio.to_thread(self._load)
            self._resolved = True
            logger.info("Identity resolved: %s", self._current.uid if self._current else None)
        return self._current

    def on_identity_change(self, callback: IdentityCallback) -> Unsubscribe:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(callback)

        return _unsubscribe

    async def sign_in(self) -> Identity:
        name = (self._user_name or getpass.getuser() or "").strip()
        if not name:
            raise RuntimeError("No user name available for sign-in")

        identity = Identity(uid=uid_for(name), display_name=name)
        await asyncio.to_thread(self._save, identity)
        self._set(identity)
        logger.info("Signed in uid=%s", identity.uid)
        return identity

    async def sign_out(self) -> None:
        await asyncio.to_thread(self._clear)
        self._set(None)
        logger.info("Signed out")

    # ---- internals ----

    def _set(self, identity: Identity | None) -> None:
        self._current = identity
        self._resolved = True
        for callback in list(self._listeners):
            try:
                callback(identity)
            except Exception:
                logger.exception("Identity listener crashed")

    def _load(self) -> Identity | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read identity from %s", self._path)
            return None
        if not isinstance(data, dict) or not data.get("uid"):
            return None
        display_name = data.get("display_name")
        return Identity(uid=str(data["uid"]), display_name=str(display_name) if display_name else None)

    def _save(self, identity: Identity) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        payload = {"uid": identity.uid, "display_name": identity.display_name}
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)

    def _clear(self) -> None:
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()
