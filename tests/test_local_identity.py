# tests/test_local_identity.py

from __future__ import annotations

from pathlib import Path

import pytest

from weekplan.auth.local_identity import LocalIdentityProvider, uid_for


@pytest.mark.asyncio
async def test_resolves_none_until_signed_in(tmp_path: Path) -> None:
    provider = LocalIdentityProvider(tmp_path / "identity.json", user_name="Ada")
    assert await provider.resolve_identity() is None
    assert provider.current_identity() is None


@pytest.mark.asyncio
async def test_sign_in_persists_across_restarts(tmp_path: Path) -> None:
    path = tmp_path / "identity.json"
    provider = LocalIdentityProvider(path, user_name="Ada")
    seen = []
    provider.on_identity_change(seen.append)

    identity = await provider.sign_in()

    assert identity.uid == uid_for("Ada")
    assert identity.display_name == "Ada"
    assert seen == [identity]
    assert path.exists()

    restarted = LocalIdentityProvider(path)
    assert await restarted.resolve_identity() == identity


@pytest.mark.asyncio
async def test_sign_out_clears_and_notifies(tmp_path: Path) -> None:
    path = tmp_path / "identity.json"
    provider = LocalIdentityProvider(path, user_name="Ada")
    await provider.sign_in()
    seen = []
    unsubscribe = provider.on_identity_change(seen.append)

    await provider.sign_out()

    assert seen == [None]
    assert provider.current_identity() is None
    assert not path.exists()

    unsubscribe()
    await provider.sign_in()
    assert seen == [None]


@pytest.mark.asyncio
async def test_corrupt_identity_file_resolves_none(tmp_path: Path) -> None:
    path = tmp_path / "identity.json"
    path.write_text("{not json", "utf-8")
    assert await LocalIdentityProvider(path).resolve_identity() is None


def test_uid_is_stable_and_case_insensitive() -> None:
    assert uid_for("Ada") == uid_for(" ada ")
    assert uid_for("Ada") != uid_for("Grace")
