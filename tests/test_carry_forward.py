# tests/test_carry_forward.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from weekplan.core.errors import PartialCarryForward, Unauthenticated
from weekplan.tasks.carry_forward import carry_forward, roll_forward, select_carry_over
from weekplan.tasks.task_store import TaskStore

from .fakes import FakeRecordStore, record, task

NOW = date(2024, 6, 12)  # Wednesday
TODAY_KEY = "2024-06-12"


def _mixed_records() -> list[dict]:
    return [
        record("A", "2024-06-10"),                                     # stale, incomplete
        record("B", "2024-06-10", completed=True),                     # stale, completed
        record("C", "2023-01-02", original="2022-12-30"),              # very stale, already carried once
        record("D", TODAY_KEY),                                        # today
        record("E", "2024-06-20"),                                     # future
        record("F", "2020-02-29", completed=True, original="2020-02-01"),
    ]


def _setup(identity, recs=None):
    records = FakeRecordStore({identity.uid: recs if recs is not None else _mixed_records()})
    store = TaskStore(records, lambda: identity)
    return records, store


@pytest.mark.asyncio
async def test_scenario_incomplete_task_is_carried(identity) -> None:
    records, store = _setup(identity, [record("A", "2024-06-10")])

    (a,) = await carry_forward(NOW, await store.fetch_all(), store)

    assert a.date == TODAY_KEY
    assert a.original_date == "2024-06-10"
    assert a.is_carried
    assert records.data["u1"]["A"]["date"] == TODAY_KEY
    assert records.data["u1"]["A"]["originalDate"] == "2024-06-10"


@pytest.mark.asyncio
async def test_scenario_completed_task_is_untouched(identity) -> None:
    records, store = _setup(identity, [record("B", "2024-06-10", completed=True)])
    before = await store.fetch_all()

    after = await carry_forward(NOW, before, store)

    assert after == before
    assert records.count("update") == 0


@pytest.mark.asyncio
async def test_only_incomplete_past_tasks_move(identity) -> None:
    records, store = _setup(identity)
    before = {t.id: t for t in await store.fetch_all()}

    after = {t.id: t for t in await carry_forward(NOW, list(before.values()), store)}

    assert {tid for tid in after if after[tid].date != before[tid].date} == {"A", "C"}
    for tid in ("B", "D", "E", "F"):
        assert after[tid] == before[tid]
    patched = sorted(c[2] for c in records.calls if c[0] == "update")
    assert patched == ["A", "C"]


@pytest.mark.asyncio
async def test_identity_and_provenance_preserved(identity) -> None:
    _, store = _setup(identity)
    before = await store.fetch_all()

    after = await carry_forward(NOW, before, store)

    assert [t.id for t in after] == [t.id for t in before]
    for b, a in zip(before, after):
        assert a.original_date == b.original_date
        assert a.created_at == b.created_at
        assert a.text == b.text
        assert a.completed == b.completed


@pytest.mark.asyncio
async def test_carry_forward_is_idempotent(identity) -> None:
    records, store = _setup(identity)

    once = await carry_forward(NOW, await store.fetch_all(), store)
    updates_after_first = records.count("update")
    twice = await carry_forward(NOW, once, store)

    assert twice == once
    assert records.count("update") == updates_after_first
    assert select_carry_over(TODAY_KEY, once) == []
    # Store and returned collection agree.
    assert sorted(await store.fetch_all(), key=lambda t: t.id) == sorted(once, key=lambda t: t.id)


@pytest.mark.asyncio
async def test_accepts_datetime_now(identity) -> None:
    _, store = _setup(identity, [record("A", "2024-06-11")])
    (a,) = await carry_forward(datetime(2024, 6, 12, 0, 0, 1), await store.fetch_all(), store)
    assert a.date == TODAY_KEY


@pytest.mark.asyncio
async def test_partial_failure_reports_failed_ids(identity) -> None:
    records, store = _setup(identity)
    records.fail_update_ids = {"C"}

    with pytest.raises(PartialCarryForward) as exc_info:
        await carry_forward(NOW, await store.fetch_all(), store)

    assert exc_info.value.failed_ids == ("C",)
    assert "C" in exc_info.value.errors
    # The other patch was still issued and landed.
    assert records.data["u1"]["A"]["date"] == TODAY_KEY
    assert records.data["u1"]["C"]["date"] == "2023-01-02"


@pytest.mark.asyncio
async def test_vanished_task_counts_as_failure(identity) -> None:
    records, store = _setup(identity, [record("A", "2024-06-10")])
    tasks = await store.fetch_all()
    del records.data["u1"]["A"]

    with pytest.raises(PartialCarryForward) as exc_info:
        await carry_forward(NOW, tasks, store)
    assert exc_info.value.failed_ids == ("A",)


@pytest.mark.asyncio
async def test_unauthenticated_is_not_wrapped(identity) -> None:
    records = FakeRecordStore()
    store = TaskStore(records, lambda: None)

    with pytest.raises(Unauthenticated):
        await carry_forward(NOW, [task("A", "2024-06-10")], store)


@pytest.mark.asyncio
async def test_nothing_due_issues_no_writes(identity) -> None:
    records, store = _setup(identity, [record("D", TODAY_KEY), record("E", "2024-07-01")])
    await carry_forward(NOW, await store.fetch_all(), store)
    assert records.count("update") == 0


def test_roll_forward_is_pure() -> None:
    tasks = [task("A", "2024-06-01"), task("B", "2024-06-01", completed=True)]
    rolled = roll_forward(TODAY_KEY, tasks)
    assert tasks[0].date == "2024-06-01"
    assert [t.date for t in rolled] == [TODAY_KEY, "2024-06-01"]
    assert roll_forward(TODAY_KEY, rolled) == rolled
